from typing import List, Optional

from pydantic import BaseModel


class SettingUpdate(BaseModel):
    value: Optional[str] = None
    department: Optional[str] = None


class SettingItem(BaseModel):
    key: str
    value: Optional[str] = None
    department: Optional[str] = None


class BulkSettingsUpdate(BaseModel):
    settings: List[SettingItem]
