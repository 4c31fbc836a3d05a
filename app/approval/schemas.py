# app/approval/schemas.py
from pydantic import BaseModel


class ApprovalUpdate(BaseModel):
    side: str
    status: str
