from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

COMPLETED_STATUS = "Completed"


class SigningRequest(BaseModel):
    """Status snapshot of a signing request as returned by the SignPath API"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: str
    is_final_status: bool = Field(alias="isFinalStatus")
    signed_artifact_link: Optional[str] = Field(default=None, alias="signedArtifactLink")

    @property
    def is_completed(self) -> bool:
        return self.is_final_status and self.status == COMPLETED_STATUS


class BackoffConfig(BaseModel):
    max_waiting_time: float = 60.0 * 60  # 1 hour
    min_delay: float = 60.0  # start from 1 min
    max_delay: float = 60.0 * 20  # check at least every 20 minutes

    @model_validator(mode="after")
    def _check_bounds(self) -> "BackoffConfig":
        if self.max_waiting_time < 0:
            raise ValueError("max_waiting_time must not be negative")
        if self.min_delay <= 0:
            raise ValueError("min_delay must be positive")
        if self.min_delay > self.max_delay:
            raise ValueError("min_delay must not exceed max_delay")
        return self


class DownloadConfig(BaseModel):
    timeout: float = 300.0


class SubmitSigningRequestPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_token: str = Field(alias="apiToken")
    artifact_name: str = Field(alias="artifactName")
    github_api_url: Optional[str] = Field(default=None, alias="gitHubApiUrl")
    github_workflow_run_id: Optional[str] = Field(default=None, alias="gitHubWorkflowRunId")
    github_repository: Optional[str] = Field(default=None, alias="gitHubRepository")
    github_token: str = Field(alias="gitHubToken")
    organization_id: str = Field(alias="signPathOrganizationId")
    project_slug: str = Field(alias="signPathProjectSlug")
    signing_policy_slug: str = Field(alias="signPathSigningPolicySlug")
    artifact_configuration_slug: Optional[str] = Field(
        default=None, alias="signPathArtifactConfigurationSlug"
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class SetupValidationError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    how_to_fix: Optional[str] = Field(default=None, alias="howToFix")


class ValidationResult(BaseModel):
    errors: List[SetupValidationError] = Field(default_factory=list)


class SubmitSigningRequestResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signing_request_id: Optional[str] = Field(default=None, alias="signingRequestId")
    signing_request_url: Optional[str] = Field(default=None, alias="signingRequestUrl")
    error: Optional[str] = None
    validation_result: Optional[ValidationResult] = Field(
        default=None, alias="validationResult"
    )


class TaskResult(BaseModel):
    signing_request_id: str
    signing_request_web_url: Optional[str] = None
    signpath_api_url: Optional[str] = None
    signed_artifact_download_url: Optional[str] = None
    output_directory: Optional[str] = None
