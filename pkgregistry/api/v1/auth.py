from fastapi import APIRouter, HTTPException

from ...core.security import Role, authenticate_admin, create_jwt
from ...domain import schemas

router = APIRouter()

@router.post("/login", response_model=schemas.LoginResult)
def login(body: schemas.LoginRequest):
    if not authenticate_admin(body.username, body.password):
        raise HTTPException(status_code=401, detail="Invalid username or password.")
    return schemas.LoginResult(token=create_jwt(body.username, Role.admin))
