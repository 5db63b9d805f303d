"""HTTP API: AI chat/analysis plus the sign-in endpoints that issue bearer tokens."""

import logging
from contextlib import asynccontextmanager
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ai_service import CHAT_ERROR, analyze_insight, chat_reply
from auth import AuthContext, create_session, resolve_session, revoke_session, sign_in, sign_up
from config import configure_logging
from database import get_db, init_db
from errors import AuthError, StoreError, ValidationError
from providers import CompletionProvider, select_provider

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = "Có lỗi xảy ra. Vui lòng thử lại."


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


configure_logging()
app = FastAPI(title="PocketWise API", version="0.1.0", lifespan=lifespan)
# Chosen once; switching providers needs a restart
app.state.provider = select_provider()

bearer = HTTPBearer(auto_error=False)


def get_provider(request: Request) -> CompletionProvider:
    return request.app.state.provider


def get_auth_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return credentials.credentials


def get_current_user(token: str = Depends(get_auth_token), db: Session = Depends(get_db)) -> AuthContext:
    try:
        return resolve_session(db, token)
    except AuthError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


# --- Schemas ---

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str


class AnalyzeResponse(BaseModel):
    insight: str


class SignupRequest(BaseModel):
    email: str
    password: str
    display_name: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


async def read_chat_messages(request: Request) -> Optional[List[dict]]:
    """Chat history from the request body, or None when the body is unusable.

    The chat route answers a bad body with its error reply instead of a 422,
    so the body is parsed here rather than by FastAPI.
    """
    try:
        payload = ChatRequest.model_validate(await request.json())
    except ValueError as exc:
        # json and pydantic errors are both ValueErrors
        logger.warning("Rejected chat body: %s", exc)
        return None
    return [m.model_dump() for m in payload.messages]


# --- AI ---

@app.post(
    "/api/ai/chat",
    response_model=ChatResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
        }
    },
)
def ai_chat(
    ctx: AuthContext = Depends(get_current_user),
    messages: Optional[List[dict]] = Depends(read_chat_messages),
    db: Session = Depends(get_db),
    provider: CompletionProvider = Depends(get_provider),
):
    if messages is None:
        return ChatResponse(reply=CHAT_ERROR)
    return ChatResponse(reply=chat_reply(db, ctx, provider, messages))


@app.post("/api/ai/analyze", response_model=AnalyzeResponse)
def ai_analyze(
    ctx: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: CompletionProvider = Depends(get_provider),
):
    return AnalyzeResponse(insight=analyze_insight(db, ctx, provider))


# --- Auth ---

@app.post("/api/auth/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(req: SignupRequest, db: Session = Depends(get_db)):
    try:
        ctx = sign_up(db, req.email, req.password, req.display_name)
        return TokenResponse(access_token=create_session(db, ctx))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"field": exc.field, "message": exc.message})
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)


@app.post("/api/auth/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    try:
        ctx = sign_in(db, req.email, req.password)
        return TokenResponse(access_token=create_session(db, ctx))
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)


@app.post("/api/auth/logout")
def logout(
    token: str = Depends(get_auth_token),
    ctx: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        revoke_session(db, token)
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)
    return {"status": "ok"}


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8001, reload=True)
