"""Domain layer: stages, contexts, builder, checker, handoffs, workflow."""
