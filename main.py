# main.py
from fastapi import FastAPI, Request, Form, Depends
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

import models  # noqa: F401  registers tables on Base
import schemas
from cloudinary_service import CloudinaryService
from config import settings
from database import engine, Base
from deps import get_roster
from errors import (CatalogError, BackendUnavailable, ValidationError, PartiallyWritten,
                    BulkOperationFailed, PartialUploadFailure, AuthenticationFailed, PermissionDenied)
from routes import categories, products, images, users
from services.user_roster import (UserRoster, create_roster, issue_session_token,
                                  decode_session_token)
from utils import get_logger

load_dotenv()

logger = get_logger("app")

app = FastAPI(title="Catalog Admin")

if engine is not None:
    Base.metadata.create_all(bind=engine)

app.state.supabase_client = None
app.state.image_service = CloudinaryService(
    cloud_name=settings.cloudinary_cloud_name,
    upload_preset=settings.cloudinary_upload_preset,
    api_key=settings.cloudinary_api_key,
    api_secret=settings.cloudinary_api_secret,
)
app.state.roster = create_roster(settings.bootstrap_admin_username, settings.bootstrap_admin_password)

SESSION_COOKIE = settings.session_cookie_name
PUBLIC_PATHS = {"/login", "/logout", "/openapi.json"}
PUBLIC_PREFIXES = ("/docs",)

# --- Error mapping ---
ERROR_STATUS = [
    (BackendUnavailable, 503),
    (ValidationError, 422),
    (PartiallyWritten, 502),
    (BulkOperationFailed, 502),
    (PartialUploadFailure, 502),
    (AuthenticationFailed, 401),
    (PermissionDenied, 403),
]


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    if status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, status_code, exc)
    content = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, PartiallyWritten):
        content["compensated"] = exc.compensated
    return JSONResponse(status_code=status_code, content=content)


# --- Sessions ---
@app.post("/login", response_model=schemas.User)
def login(username: str = Form(...), password: str = Form(...), roster: UserRoster = Depends(get_roster)):
    try:
        user = roster.authenticate(username, password)
    except AuthenticationFailed:
        logger.info("Failed login for %s", username)
        raise
    token = issue_session_token(user, settings.jwt_secret_key)
    response = JSONResponse(content=user.model_dump(mode="json"))
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=True, samesite="lax", max_age=86400, secure=True)
    return response


@app.post("/logout")
def logout():
    response = JSONResponse(content={"detail": "Logged out"})
    response.delete_cookie(SESSION_COOKIE)
    return response


@app.middleware("http")
async def add_login_middleware(request: Request, call_next):
    path = request.url.path
    if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
        return await call_next(request)
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return JSONResponse(status_code=401, content={"detail": "Not logged in"})
    try:
        request.state.user = decode_session_token(token, settings.jwt_secret_key)
    except AuthenticationFailed as e:
        response = JSONResponse(status_code=401, content={"detail": str(e)})
        response.delete_cookie(SESSION_COOKIE)
        return response
    return await call_next(request)


# Routers
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(images.router)
app.include_router(users.router)
