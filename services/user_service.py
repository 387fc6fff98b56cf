import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from database import get_session
from usermodel.user_model import Role, User

logger = logging.getLogger("journeycraft_api.users")

ph = PasswordHasher()


def get_all_users() -> list[User]:
    with get_session() as session:
        return list(session.exec(select(User).order_by(User.id)))


def find_by_email(email: str) -> User | None:
    with get_session() as session:
        return session.exec(select(User).where(User.email == email)).first()


def get_user(user_id: int) -> User | None:
    with get_session() as session:
        return session.get(User, user_id)


def get_users_by_role(role: Role) -> list[User]:
    with get_session() as session:
        return list(session.exec(select(User).where(User.role == role).order_by(User.id)))


def save_user(username: str, email: str, password: str, role: Role) -> User:
    """
        Persist a new user with an argon2-hashed password.
        Raises a 400 if the email is already registered.
    """
    if find_by_email(email) is not None:
        logger.warning(f"Registration rejected, email already registered: {email}")
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Email is already registered")

    user = User(username=username, email=email, password=ph.hash(password), role=role)

    with get_session() as session:
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            session.rollback()
            logger.warning(f"Registration rejected on unique constraint: {email}")
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Email is already registered")
        session.refresh(user)

    logger.info(f"User registered: id={user.id} email={email} role={role.value}")
    return user


def login_user(email: str, password: str) -> User | None:
    user = find_by_email(email)
    if user is None:
        logger.warning(f"Login failed: no user for email={email}")
        return None

    try:
        ph.verify(user.password, password)
    except (VerificationError, InvalidHash):
        logger.warning(f"Login failed: bad password for email={email}")
        return None

    if ph.check_needs_rehash(user.password):
        with get_session() as session:
            user.password = ph.hash(password)
            session.add(user)
            session.commit()
            session.refresh(user)

    return user
