"""Raw stage outputs - the shapes stage collaborators hand to the builder.

Each stage has one variant, tagged by ``kind``. Sections inside a variant
stay free-form key/value data; the builder's rule tables normalize them.
Anything that is not one of the known variants is rejected.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from campaign_pipeline.domain.errors import BuilderInputError
from campaign_pipeline.domain.stages import Stage

Section = Optional[Dict[str, Any]]


class _RawOutput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: Optional[str] = Field(None, description="Where the raw output came from (file, agent)")


class ContentRawOutput(_RawOutput):
    """Raw output of the content stage."""
    kind: Literal["content"] = "content"
    campaign: Section = None
    context_analysis: Section = None
    date_analysis: Section = None
    pricing_analysis: Section = None
    asset_strategy: Section = None
    generated_content: Section = None
    technical_requirements: Section = None


class DesignRawOutput(_RawOutput):
    """Raw output of the design stage."""
    kind: Literal["design"] = "design"
    asset_manifest: Section = None
    mjml_template: Section = None
    design_decisions: Section = None
    brand_application: Section = None
    content_integration: Section = None
    asset_utilization: Section = None
    preview_files: Optional[List[Dict[str, Any]]] = None
    performance_metrics: Section = None


class QualityRawOutput(_RawOutput):
    """Raw output of the quality stage."""
    kind: Literal["quality"] = "quality"
    quality_report: Section = None
    design_validation: Section = None
    asset_validation: Section = None
    test_artifacts: Section = None
    compliance_status: Section = None


class DeliveryRawOutput(_RawOutput):
    """Raw output of the delivery stage."""
    kind: Literal["delivery"] = "delivery"
    delivery_manifest: Section = None
    export_format: Section = None
    delivery_report: Section = None
    deployment_artifacts: Section = None
    quality_preservation: Section = None
    delivery_status: Optional[str] = None


RawStageOutput = Annotated[
    Union[ContentRawOutput, DesignRawOutput, QualityRawOutput, DeliveryRawOutput],
    Field(discriminator="kind"),
]

_RAW_OUTPUT_ADAPTER = TypeAdapter(RawStageOutput)
_VARIANTS = (ContentRawOutput, DesignRawOutput, QualityRawOutput, DeliveryRawOutput)


def parse_raw_output(data: Any, expected_stage: Optional[Stage] = None) -> RawStageOutput:
    """Parse raw data into its stage variant.

    Raises:
        BuilderInputError: unknown shape, or a variant for another stage.
    """
    stage_label = Stage(expected_stage).value if expected_stage is not None else "unknown"
    if isinstance(data, _VARIANTS):
        parsed = data
    elif isinstance(data, Mapping):
        payload = dict(data)
        # Stage-scoped callers may omit the tag
        if expected_stage is not None:
            payload.setdefault("kind", Stage(expected_stage).value)
        try:
            parsed = _RAW_OUTPUT_ADAPTER.validate_python(payload)
        except PydanticValidationError as exc:
            raise BuilderInputError(
                expected_stage,
                f"Unrecognized raw output shape for stage '{stage_label}'",
                [
                    {
                        "path": ".".join(str(p) for p in err["loc"]) or "$",
                        "message": err["msg"],
                    }
                    for err in exc.errors()
                ],
            ) from exc
    else:
        raise BuilderInputError(
            expected_stage,
            f"Raw output for stage '{stage_label}' must be a mapping",
            [{"path": "$", "message": f"got {type(data).__name__}"}],
        )

    if expected_stage is not None and parsed.kind != Stage(expected_stage).value:
        raise BuilderInputError(
            expected_stage,
            f"Raw output kind '{parsed.kind}' does not match stage '{stage_label}'",
            [{"path": "kind", "message": f"expected '{stage_label}'"}],
        )
    return parsed
