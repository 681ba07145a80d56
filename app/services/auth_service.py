import logging
import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import transactional
from app.core.exceptions import Conflict, Unauthenticated, AccountDisabled
from app.repositories.user_repo import UserRepository
from app.repositories.profile_repo import ProfileRepository
from app.core.security import verify_password, create_access_token, get_password_hash
from app.models.user import User, UserRoleEnum
from app.schemas.user_schema import UserCreate

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        驗證使用者帳號密碼。
        帳密錯誤 -> Unauthenticated；帳號停權 -> AccountDisabled
        """
        user = await self.user_repo.get_user_by_email(email)

        # 1. 檢查使用者是否存在 + 密碼是否正確 (兩者回傳同一個錯誤，避免洩漏帳號是否存在)
        if not user or not verify_password(plain_password=password, hashed_password=user.password_hash):
            logger.warning("登入失敗：帳號或密碼錯誤")
            raise Unauthenticated("不正確的帳號或密碼")

        # 2. 檢查是否被停權
        if not user.is_active:
            logger.warning(f"停權帳號嘗試登入: {user.user_id}")
            raise AccountDisabled()

        return user

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊 (自由工作者會同時建立空白的 FreelanceProfile)
        """
        email = user_create.email.strip().lower()

        # 1. 檢查 Email 是否已被註冊
        existing_user = await self.user_repo.get_user_by_email(email)
        if existing_user:
            raise Conflict("此 Email 已經被註冊")

        # 2. 建立 User ORM 模型 (密碼只存雜湊值)
        new_user = User(
            user_id=str(uuid.uuid4()), # 產生一個新的 UUID
            email=email,
            password_hash=get_password_hash(user_create.password),
            role=user_create.role,
            first_name=user_create.first_name,
            last_name=user_create.last_name,
            phone=user_create.phone,
            location=user_create.location,
            bio=user_create.bio,
            is_active=True,
            email_verified=False,
        )

        # 3. 在同一個交易中寫入 User (+ FreelanceProfile)
        try:
            async with transactional(self.db):
                self.user_repo.add_user(new_user)
                await self.db.flush()
                if new_user.role == UserRoleEnum.freelance:
                    self.profile_repo.add_freelance_profile(new_user.user_id)
        except IntegrityError:
            raise Conflict("此 Email 已經被註冊")

        logger.info(f"新使用者註冊: {new_user.user_id} ({new_user.role.value})")
        return await self.user_repo.get_user_with_profile(new_user.user_id)

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        access_token = create_access_token(
            data={
                "sub": user.email, # 'sub' 是 JWT 的標準欄位
                "user_id": str(user.user_id),
                "role": user.role.value # 確保存入的是字串
            }
        )
        return access_token
