"""
Middleware, передающий обработчикам репозитории, кэш и экраны
"""
from typing import Callable, Dict, Any, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from handlers.views import ViewRegistry
from services.container import Services


class ServicesMiddleware(BaseMiddleware):
    """Добавляет services и views в данные обработчика"""

    def __init__(self, services: Services, views: ViewRegistry):
        self.services = services
        self.views = views

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        data['services'] = self.services
        data['views'] = self.views

        # Продолжение обработки
        return await handler(event, data)
