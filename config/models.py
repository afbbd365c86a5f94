from pydantic import BaseModel, Field
from typing import Optional

class LoggingConfig(BaseModel):
    level: str = Field("INFO", description="Minimum level written to stderr")
    file: Optional[str] = Field(None, description="Optional log file, always written at DEBUG level")

class FormatterConfig(BaseModel):
    template: str = "report.j2"
    template_dir: Optional[str] = None

class OutputConfig(BaseModel):
    indent: int = Field(2, description="Indentation of the folded JSON output")
    report: bool = Field(False, description="Print a report for each folded message")


class Config(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")
    formatter: FormatterConfig = Field(default_factory=FormatterConfig, description="Report formatter settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")
