"""
Unit of Work Pattern - one transaction, many repositories

Architecture:
- UoW owns the session lifecycle
- UoW owns commit/rollback; leaving the block without commit() rolls back
- Repositories receive the UoW's session
- Use cases coordinate repositories through the UoW
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Optional

import anyio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


if TYPE_CHECKING:
    from src.service.recreation.app.interface.i_tour_query_repo import ITourQueryRepo
    from src.service.recreation.app.interface.i_tour_reservation_repo import (
        ITourReservationRepo,
    )


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            reservation = await uow.reservation_repo.get_by_id(...)
            await uow.reservation_repo.update(...)
            await uow.commit()
    """

    reservation_repo: ITourReservationRepo
    tour_repo: ITourQueryRepo

    committed: bool = False

    async def __aenter__(self) -> AbstractUnitOfWork:
        self.committed = False
        return self

    async def __aexit__(self, *args) -> None:
        if not self.committed:
            # rollback must finish even when the caller is being cancelled
            with anyio.CancelScope(shield=True):
                await self.rollback()

    async def commit(self) -> None:
        await self._commit()
        self.committed = True

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.recreation.driven_adapter.repo.tour_query_repo_impl import (
            TourQueryRepoImpl,
        )
        from src.service.recreation.driven_adapter.repo.tour_reservation_repo_impl import (
            TourReservationRepoImpl,
        )

        self.session = self.session_factory()
        await self.session.begin()

        self.reservation_repo = TourReservationRepoImpl(session=self.session)
        self.tour_repo = TourQueryRepoImpl(session=self.session)

        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                with anyio.CancelScope(shield=True):
                    await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        if self.session is None:
            raise RuntimeError('UnitOfWork used outside of its context')
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
