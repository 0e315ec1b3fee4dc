from assist.models.users import User, UserRole
from assist.repository.user_repo import UserRepository
from assist.utils.custom_exceptions import (
    IncorrectCredentials,
    UserAlreadyExists,
    NotFoundException,
)
import bcrypt
import uuid
from assist.utils.jwt_service import issue_token


class UserService:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def get_user_by_mail(self, mail: str) -> User:
        user = self.user_repo.get_by_mail(mail=mail)
        if user is None:
            raise NotFoundException(resource="user", identifier=mail)
        return user

    def login(self, email: str, password: str) -> str:
        user = self.get_user_by_mail(email.lower())

        if not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password.encode("utf-8"),
        ):
            raise IncorrectCredentials("Invalid email or password")

        return issue_token(user)

    def signup(
        self,
        email: str,
        username: str,
        password: str,
        phone: str,
        role: UserRole = UserRole.CUSTOMER,
    ) -> str:
        email = email.lower().strip()
        if self.user_repo.get_by_mail(mail=email):
            raise UserAlreadyExists("email is already in use")

        hashed = self._hash_password(password)
        user_id = str(uuid.uuid4())

        user = User(
            user_id=user_id,
            username=username.strip(),
            email=email,
            phone_number=phone,
            password=hashed,
            role=role,
        )
        self.user_repo.add_user(user)
        return issue_token(user)

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()
