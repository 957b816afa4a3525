"""
User repository using SQLAlchemy ORM
"""

from typing import Optional, Union
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.core.exceptions.base import ConflictError, StoreError
from src.core.service.auth.models.user import User, UserCreate, UserRole
from src.infra.models import UserModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user database operations using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: UserModel) -> User:
        """Convert SQLAlchemy model to Pydantic entity"""
        return User(
            id=model.id,
            name=model.name,
            address=model.address,
            role=UserRole(model.role),
            is_address_verified=model.is_address_verified,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    async def find_by_address(self, address: str) -> Optional[User]:
        """
        Get user by wallet address

        Args:
            address: Wallet address, compared lower-cased

        Returns:
            User object or None
        """
        try:
            stmt = select(UserModel).where(UserModel.address == address.lower())
            result = await self.session.execute(stmt)
            user_model = result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error(
                "Failed to get user by address",
                extra={
                    "wallet_address": address,
                    "error": str(e)
                }
            )
            raise StoreError("Error with getting user") from e

        return self._model_to_entity(user_model) if user_model else None

    async def get_by_id(self, user_id: Union[UUID, str]) -> Optional[User]:
        """Get user by id; malformed ids are treated as unknown"""
        try:
            user_id = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            return None

        try:
            user_model = await self.session.get(UserModel, user_id)

        except SQLAlchemyError as e:
            logger.error(
                "Failed to get user by id",
                extra={
                    "user_id": str(user_id),
                    "error": str(e)
                }
            )
            raise StoreError("Error with getting user") from e

        return self._model_to_entity(user_model) if user_model else None

    async def create(self, user: UserCreate) -> User:
        """
        Create a new user

        Raises:
            ConflictError: The address is already taken
            StoreError: The insert failed for any other reason
        """
        new_user = UserModel(
            name=user.name,
            address=user.address.lower(),
            role=user.role.value,
            is_address_verified=user.is_address_verified
        )

        try:
            self.session.add(new_user)
            await self.session.commit()
            await self.session.refresh(new_user)

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Address already taken",
                extra={"wallet_address": user.address}
            )
            raise ConflictError("Address already taken", context={"wallet_address": user.address}) from e

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to create user",
                extra={
                    "wallet_address": user.address,
                    "error": str(e)
                }
            )
            raise StoreError("Error with creating user") from e

        logger.info(
            "New user created in database",
            extra={
                "wallet_address": new_user.address,
                "user_id": str(new_user.id)
            }
        )

        return self._model_to_entity(new_user)
