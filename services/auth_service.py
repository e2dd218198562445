from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.exceptions import DuplicateEmailError, InvalidCredentialsError
from models.users import User
from utils.hashing import dummy_verify, verify_password, get_password_hash
from utils.logger import get_logger

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Credential store: user lookup, creation and password checks.
    """

    @staticmethod
    def find_by_email(email: str, db: Session) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).one_or_none()

    @staticmethod
    def get_user_by_id(user_id: int, db: Session) -> User | None:
        return db.query(User).filter(User.id == user_id).one_or_none()

    @staticmethod
    def create_user(email: str, password: str, db: Session, role: str = "user") -> User:
        """
        Hashes the password once and stores the user.

        Raises DuplicateEmailError when the address (compared case-insensitively)
        is already registered, including when a concurrent sign-up wins the
        race on the unique index.
        """
        email = normalize_email(email)

        if AuthService.find_by_email(email, db):
            logger.warning(
                "Registration attempt with existing email",
                extra={"email": email}
            )
            raise DuplicateEmailError()

        model = User(
            email=email,
            hashed_password=get_password_hash(password),
            role=role,
        )
        db.add(model)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Registration lost race on unique email",
                extra={"email": email}
            )
            raise DuplicateEmailError()

        db.refresh(model)
        return model

    @staticmethod
    def verify_user_password(user: User, password: str) -> bool:
        return verify_password(password, user.hashed_password)

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = AuthService.find_by_email(email, db)

        # Same error either way, so callers can't probe for registered emails
        if not user:
            dummy_verify()
            logger.warning(
                "Login failed - user not found",
                extra={"email": email}
            )
            raise InvalidCredentialsError()

        if not AuthService.verify_user_password(user, password):
            logger.warning(
                "Login failed - invalid password",
                extra={"user_id": user.id, "email": email}
            )
            raise InvalidCredentialsError()

        logger.debug(
            "User authenticated successfully",
            extra={"user_id": user.id, "email": user.email}
        )
        return user
