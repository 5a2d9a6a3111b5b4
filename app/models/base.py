from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def enum_values(enum_cls) -> list[str]:
    """Persist enum values ('pending') rather than member names ('PENDING')."""
    return [member.value for member in enum_cls]
