"""Request body models for analysis endpoints.

Field names accept both snake_case and the camelCase aliases used by
existing clients.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain import AnalysisContext, AnalysisJobRequest, AnalysisMetadata, AnalysisOptions


class AnalysisMetadataBody(BaseModel):
    """Optional environment metadata for one analysis."""

    model_config = ConfigDict(populate_by_name=True)

    environment: str = Field(min_length=1)
    version: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)


class AnalysisContextBody(BaseModel):
    """Analyzed subject of one job."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="projectId", min_length=1)
    test_id: str = Field(alias="testId", min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    metadata: AnalysisMetadataBody | None = None


class AnalysisOptionsBody(BaseModel):
    """Processing options for one job."""

    model_config = ConfigDict(populate_by_name=True)

    priority: Literal["low", "medium", "high"] = "medium"
    notify_on_completion: bool = Field(default=False, alias="notifyOnCompletion")
    analysis_depth: Literal["basic", "detailed", "comprehensive"] = Field(default="detailed", alias="analysisDepth")
    include_metrics: list[str] | None = Field(default=None, alias="includeMetrics")


class AnalysisCreateBody(BaseModel):
    """Body of `POST /v1/analyses`."""

    context: AnalysisContextBody
    options: AnalysisOptionsBody = Field(default_factory=AnalysisOptionsBody)

    def api_to_domain_request(self) -> AnalysisJobRequest:
        """Map the validated body to the domain request.

        Returns:
            AnalysisJobRequest: Immutable domain request.
        """

        metadata = None
        if self.context.metadata is not None:
            metadata = AnalysisMetadata(
                environment=self.context.metadata.environment,
                version=self.context.metadata.version,
                tags=tuple(self.context.metadata.tags),
            )
        return AnalysisJobRequest(
            context=AnalysisContext(
                project_id=self.context.project_id,
                test_id=self.context.test_id,
                parameters=dict(self.context.parameters),
                metadata=metadata,
            ),
            options=AnalysisOptions(
                priority=self.options.priority,
                notify_on_completion=self.options.notify_on_completion,
                analysis_depth=self.options.analysis_depth,
                include_metrics=tuple(self.options.include_metrics) if self.options.include_metrics is not None else None,
            ),
        )
