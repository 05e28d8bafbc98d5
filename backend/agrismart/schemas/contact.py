# backend/agrismart/schemas/contact.py

from typing import Optional

from .base import CamelModel


class ContactMessage(CamelModel):
    name: str
    email: str
    subject: str
    message: str


class ContactResponse(CamelModel):
    success: bool = True
    message: str
    id: Optional[str] = None
