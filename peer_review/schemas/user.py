from pydantic import BaseModel


class DeactivateOut(BaseModel):
    success: bool = True
    user_id: str
    is_active: bool
    reassigned: int
    message: str
