from fastapi import Header, HTTPException


def get_actor_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    # identity is resolved upstream by the auth gateway
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=400,
            detail="Missing caller identity. Provide X-User-Id header.",
        )
    return x_user_id.strip()
