from typing import Any, Dict, Optional

from pydantic import BaseModel


class HostSettingsResponse(BaseModel):
    public_base: str
    public_host: str
    ui_host: str
    internal_host: str
    alias_host: str
    public_api_host: str


class HostSettingsUpdate(BaseModel):
    """Partial hostname update; absent or null fields keep their value."""
    public_base: Optional[str] = None
    ui_host: Optional[str] = None
    internal_host: Optional[str] = None
    alias_host: Optional[str] = None
    public_api_host: Optional[str] = None

    def provided(self) -> Dict[str, Any]:
        return {
            name: value.strip()
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
