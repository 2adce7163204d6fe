"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from quizapp.config import settings
from quizapp.core.security import decode_access_token
from quizapp.db.session import get_db
from quizapp.services.quiz_session import QuizSessionService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.TOKEN_URL)


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> uuid.UUID:
    """Decode the identity provider's JWT and return its subject, or 401."""
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload"
        )
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject"
        )


def get_quiz_service(db: Session = Depends(get_db)) -> QuizSessionService:
    """One engine facade per request, bound to the request's DB session."""
    return QuizSessionService(db)
