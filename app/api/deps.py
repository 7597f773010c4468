from typing import Generator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Usage:
        @router.get("/parks")
        def list_parks(db: Session = Depends(get_db)):
            return ParkService(db).list_parks(ParkFilterParams())
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
