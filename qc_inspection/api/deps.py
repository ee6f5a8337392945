"""Shared route dependencies."""

from fastapi import Header, HTTPException, status


async def get_current_user_id(
    x_user_id: str = Header("0", alias="X-User-Id"),
) -> int:
    """
    Requesting user id, stored in ``created_by`` / ``updated_by``.

    Authentication happens upstream; 0 means the caller did not identify itself.
    """
    value = (x_user_id or "0").strip()
    if not value.isdigit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id must be a non-negative integer",
        )
    return int(value)
