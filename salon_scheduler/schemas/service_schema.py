"""Service catalog models."""

from typing import Optional

from pydantic import BaseModel, Field


class Service(BaseModel):
    """A bookable treatment."""

    id: str
    name: str
    duration: int
    preparation_time: int = Field(default=0, ge=0)
    price: float = 0.0
    is_active: bool = True
    sort_order: int = 0
    description: Optional[str] = None

    @property
    def total_minutes(self) -> int:
        """Duration plus the preparation buffer that follows it."""
        return self.duration + self.preparation_time


class ServiceUpdate(BaseModel):
    """Partial update applied by the admin catalog."""

    name: Optional[str] = None
    duration: Optional[int] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    description: Optional[str] = None
