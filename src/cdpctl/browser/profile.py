"""Session profile configuration."""

from pydantic import BaseModel, ConfigDict, Field

from cdpctl.config import CONFIG


class ViewportSize(BaseModel):
    """Viewport size configuration."""

    width: int = Field(ge=0)
    height: int = Field(ge=0)
    device_scale_factor: float = Field(default=1.0, gt=0)
    mobile: bool = False

    def to_params(self) -> dict:
        """Parameters for Emulation.setDeviceMetricsOverride."""
        return {
            'width': self.width,
            'height': self.height,
            'deviceScaleFactor': self.device_scale_factor,
            'mobile': self.mobile,
        }


class SessionProfile(BaseModel):
    """Connection settings and call policy of a browser session.

    The policy (slow motion delay and trace) applies to every control call made
    through the session and every session derived from it.
    """

    model_config = ConfigDict(
        extra='ignore',
        validate_assignment=True,
    )

    control_url: str | None = Field(
        default=None,
        description='ws:// endpoint, or http:// debugger address resolved through /json/version.',
    )
    viewport: ViewportSize | None = Field(default=None, description='Default viewport for newly attached pages')
    slowmotion: float = Field(default=0.0, ge=0, description='Delay in seconds before every control call')
    trace: bool = Field(default=False, description='Log every control call at INFO level')
    connect_timeout: float = Field(default=30.0, ge=0, description='Timeout in seconds for endpoint resolution')

    @classmethod
    def from_env(cls) -> 'SessionProfile':
        """Build a profile from CDPCTL_* environment variables."""
        return cls(**CONFIG.load_config())
