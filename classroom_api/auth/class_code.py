"""
Class join-code generation.

Codes are uppercase alphanumeric, drawn uniformly with `secrets`. The DB unique
constraint on classes.unique_code is the final guarantee; the lookup here only
avoids handing out a code that is already taken.
"""

import secrets
import string
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.core.config import settings
from classroom_api.core.exceptions import InternalError
from classroom_api.core.models import ClassRoom

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_class_code_candidate(length: int = 6) -> str:
    """Single candidate, no DB check."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def _code_taken(db: AsyncSession, code: str) -> bool:
    result = await db.execute(select(ClassRoom.id).where(ClassRoom.unique_code == code))
    return result.scalar_one_or_none() is not None


async def generate_class_code(
    db: AsyncSession,
    length: Optional[int] = None,
    fallback_length: Optional[int] = None,
    max_attempts: Optional[int] = None,
) -> str:
    """
    Generate an unused class code.
    Tries max_attempts codes of the normal length, then the same number of
    longer codes before giving up.
    """
    length = length or settings.class_code_length
    fallback_length = fallback_length or settings.class_code_fallback_length
    max_attempts = max_attempts or settings.class_code_max_attempts

    for code_length in (length, fallback_length):
        for _ in range(max_attempts):
            code = generate_class_code_candidate(code_length)
            if not await _code_taken(db, code):
                return code
    raise InternalError("Could not generate unique class code")
