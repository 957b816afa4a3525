"""
Login challenge store using SQLAlchemy ORM
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.core.exceptions.base import ConflictError, StoreError
from src.core.service.auth.models.challenge import ChallengeRecord, ChallengeStatus
from src.core.service.auth.utils.crypto import generate_nonce
from src.infra.config.settings import get_settings
from src.infra.models import ChallengeModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class ChallengeStore:
    """
    Persists login challenges keyed by the client's login session token.

    Reads return None for anything that is missing, in another status or
    expired. Status changes are conditional updates on the current status, so
    of two concurrent callers only one can move a record forward.
    """

    def __init__(self, session: AsyncSession, expiry_minutes: Optional[int] = None):
        self.session = session
        self.expiry = timedelta(minutes=expiry_minutes or settings.LOGIN_CHALLENGE_EXPIRY_MINUTES)

    def _model_to_record(self, model: ChallengeModel) -> ChallengeRecord:
        """Convert SQLAlchemy model to Pydantic record"""
        return ChallengeRecord(
            login_session_token=model.login_session_token,
            claimed_address=model.claimed_address,
            nonce=model.nonce,
            expires_at=model.expires_at,
            status=ChallengeStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    async def create(self, login_session_token: str, claimed_address: str) -> str:
        """
        Issue a new challenge for a login session token

        Args:
            login_session_token: Client supplied token, must not exist yet
            claimed_address: Address the client claims to control

        Returns:
            The generated nonce

        Raises:
            ConflictError: The token is already in use
            StoreError: The insert failed for any other reason
        """
        record = ChallengeRecord(
            login_session_token=login_session_token,
            claimed_address=claimed_address,
            nonce=generate_nonce(),
            expires_at=datetime.now(timezone.utc) + self.expiry,
            status=ChallengeStatus.ISSUED
        )

        try:
            self.session.add(ChallengeModel(
                login_session_token=record.login_session_token,
                claimed_address=record.claimed_address,
                nonce=record.nonce,
                expires_at=record.expires_at,
                status=record.status.value
            ))
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Login session token already in use",
                extra={
                    "login_session_token": login_session_token,
                    "error": str(e.orig)
                }
            )
            raise ConflictError(
                "Error with wallet authentication",
                context={"login_session_token": login_session_token}
            ) from e

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to save challenge",
                extra={
                    "login_session_token": login_session_token,
                    "error": str(e)
                }
            )
            raise StoreError("Error with wallet authentication") from e

        logger.info(
            "Challenge issued",
            extra={
                "login_session_token": login_session_token,
                "wallet_address": record.claimed_address,
                "expires_at": record.expires_at.isoformat()
            }
        )
        return record.nonce

    async def _get_with_status(self, login_session_token: str, status: ChallengeStatus) -> Optional[ChallengeRecord]:
        try:
            stmt = select(ChallengeModel).where(
                ChallengeModel.login_session_token == login_session_token,
                ChallengeModel.status == status.value
            ).execution_options(populate_existing=True)
            result = await self.session.execute(stmt)
            model = result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error(
                "Failed to get challenge",
                extra={
                    "login_session_token": login_session_token,
                    "status": status.value,
                    "error": str(e)
                }
            )
            raise StoreError("Error with getting wallet session") from e

        if model is None:
            return None

        record = self._model_to_record(model)
        if record.is_expired():
            logger.info(
                "Expired challenge rejected",
                extra={
                    "login_session_token": login_session_token,
                    "status": record.status.value,
                    "expires_at": record.expires_at.isoformat()
                }
            )
            return None

        return record

    async def get_issued(self, login_session_token: str) -> Optional[ChallengeRecord]:
        """Get the challenge if it is still waiting for a signature"""
        return await self._get_with_status(login_session_token, ChallengeStatus.ISSUED)

    async def get_succeeded(self, login_session_token: str) -> Optional[ChallengeRecord]:
        """Get the challenge if it was signed successfully and not used yet"""
        return await self._get_with_status(login_session_token, ChallengeStatus.SUCCESS)

    async def _transition(
        self,
        login_session_token: str,
        from_status: ChallengeStatus,
        to_status: ChallengeStatus
    ) -> bool:
        try:
            stmt = (
                update(ChallengeModel)
                .where(
                    ChallengeModel.login_session_token == login_session_token,
                    ChallengeModel.status == from_status.value
                )
                .values(
                    status=to_status.value,
                    updated_at=datetime.now(timezone.utc)
                )
            )
            result = await self.session.execute(stmt)
            await self.session.commit()

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to update challenge status",
                extra={
                    "login_session_token": login_session_token,
                    "from_status": from_status.value,
                    "to_status": to_status.value,
                    "error": str(e)
                }
            )
            raise StoreError("Error with updating wallet session") from e

        changed = result.rowcount == 1
        if changed:
            logger.info(
                "Challenge status changed",
                extra={
                    "login_session_token": login_session_token,
                    "from_status": from_status.value,
                    "to_status": to_status.value
                }
            )
        else:
            logger.warning(
                "Challenge status change lost to another request",
                extra={
                    "login_session_token": login_session_token,
                    "from_status": from_status.value,
                    "to_status": to_status.value
                }
            )
        return changed

    async def mark_result(self, login_session_token: str, authenticated: bool) -> bool:
        """
        Record the outcome of signature verification on an issued challenge.
        Expiry is not re-checked here; reads enforce it.
        """
        to_status = ChallengeStatus.SUCCESS if authenticated else ChallengeStatus.FAIL
        return await self._transition(login_session_token, ChallengeStatus.ISSUED, to_status)

    async def consume(self, login_session_token: str) -> bool:
        """Use up a successful challenge; True only for the single caller that did it"""
        return await self._transition(login_session_token, ChallengeStatus.SUCCESS, ChallengeStatus.CONSUMED)
