from sqlalchemy.engine import Engine

from session_auth.core.config import settings
from session_auth.db.base import Base
from session_auth.db.session import build_engine
import session_auth.db.models  # noqa


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db(build_engine(settings))
