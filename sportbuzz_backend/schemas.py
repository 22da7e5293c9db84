# -*- coding: utf-8 -*-
"""
Request-body schemas shared by the reader-facing routes.
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, ValidationError


class EmailAddress(BaseModel):
    """Schema for a single e-mail address field"""
    email: EmailStr


def normalize_email(value) -> Optional[str]:
    """Returns the lower-cased address if ``value`` is a valid e-mail, otherwise None."""
    if not isinstance(value, str):
        return None
    try:
        return EmailAddress(email=value.strip()).email.lower()
    except ValidationError:
        return None
