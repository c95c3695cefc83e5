from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bulk_editor.config.rules import HyperlinkReplacementRule, TextReplacementRule

DEFAULT_LOOKUP_ID_PATTERN = (
    r"(TSRC-[^-]+-[0-9]{6}(?![0-9])|CMS-[^-]+-[0-9]{6}(?![0-9]))"
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    # Processing
    max_concurrent_documents: int = Field(default=200, ge=1)
    batch_size: int = Field(default=50, ge=1)
    timeout_per_document_seconds: float = Field(default=300.0, gt=0)
    create_backup_before_processing: bool = True
    backup_directory: str = ""
    validate_hyperlinks: bool = True
    update_hyperlinks: bool = True
    add_content_ids: bool = True
    optimize_text: bool = False
    lookup_id_pattern: str = DEFAULT_LOOKUP_ID_PATTERN
    supported_extensions: list[str] = Field(default_factory=lambda: [".docx", ".docm"])
    fail_document_on_unresolved_links: bool = False
    batch_lookups_across_documents: bool = True

    # Validation API
    lookup_provider: str = "http"
    api_base_url: str = ""
    api_key: str = ""
    http_timeout_seconds: float = Field(default=30.0, gt=0)
    max_retry_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=2.0, ge=0)
    retry_backoff: str = "fixed"
    user_agent: str = "BulkEditor/1.0"
    check_expired_content: bool = True
    follow_redirects: bool = True
    auto_replace_titles: bool = False
    report_title_differences: bool = True

    # Replacement
    enable_hyperlink_replacement: bool = False
    enable_text_replacement: bool = False
    hyperlink_rules: list[HyperlinkReplacementRule] = Field(default_factory=list)
    text_rules: list[TextReplacementRule] = Field(default_factory=list)
    max_replacement_rules: int = Field(default=50, ge=0)
    validate_content_ids: bool = True
