"""
Response wrapper configuration.

Loads feature toggles from environment variables and .env file.
All configuration is centralized here, with no scattered magic strings.
Runtime collaborators that cannot come from the environment (clock,
message table, excluded types, extensions) are passed to
ResponseWrapper directly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Response wrapper settings loaded from environment.

    Every variable is prefixed with ``RESPONSE_WRAPPER_``.

    Attributes:
        project_name: Display name for the sample API.
        version: Package version string reported by the health route.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_expected_errors: Log expected client errors at INFO.
        enable_execution_time_tracking: Report executionTimeMs.
        enable_pagination_metadata: Hoist pagination out of results.
        enable_correlation_id: Report correlationId.
        enable_query_statistics: Report the query block when present.
        enable_additional_metadata: Collect the additional map on success.
        wrap_success_responses: Wrap handler results.
        wrap_error_responses: Wrap unhandled exceptions.
        excluded_paths: Path prefixes that bypass wrapping entirely.
        default_api_version: Version reported when the client sends none.
        api_version_header: Inbound header carrying the API version.
        api_version_query_param: Query parameter carrying the API version.
        correlation_id_header: Inbound header carrying the correlation id.
        custom_header_prefix: Inbound headers echoed into additional metadata.
        rate_limit_default: Default rate limit for the sample application.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESPONSE_WRAPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "ResponseWrapper"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    log_expected_errors: bool = True

    enable_execution_time_tracking: bool = True
    enable_pagination_metadata: bool = True
    enable_correlation_id: bool = True
    enable_query_statistics: bool = False
    enable_additional_metadata: bool = True
    wrap_success_responses: bool = True
    wrap_error_responses: bool = True

    excluded_paths: list[str] = []
    default_api_version: str = "1.0"
    api_version_header: str = "X-API-Version"
    api_version_query_param: str = "version"
    correlation_id_header: str = "X-Correlation-ID"
    custom_header_prefix: str = "X-Custom-"

    rate_limit_default: str = "60/minute"

    def is_excluded_path(self, path: str) -> bool:
        """Return True if the path starts with an excluded prefix."""
        lowered = path.lower()
        return any(lowered.startswith(prefix.lower()) for prefix in self.excluded_paths)


settings = Settings()
