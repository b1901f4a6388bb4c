"""
Главный файл Telegram-бота бронирования игровых столов
"""
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from config import settings
from handlers import user_handlers, admin_handlers, free_play_handlers
from handlers.views import ViewRegistry
from middlewares.services import ServicesMiddleware
from services.container import build_services
from utils.scheduler import start_scheduler

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Основная функция запуска бота"""
    logger.info("Запуск бота...")

    # Инициализация хранилища и кэша
    services = build_services(settings.DB_PATH)
    services.cache.start()
    views = ViewRegistry(services.cache)
    logger.info("Хранилище и кэш инициализированы")

    # Создание бота и диспетчера
    bot = Bot(token=settings.BOT_TOKEN)
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)

    # Передача зависимостей в обработчики
    dp.message.middleware(ServicesMiddleware(services, views))
    dp.callback_query.middleware(ServicesMiddleware(services, views))

    # Регистрация роутеров
    dp.include_router(admin_handlers.router)
    dp.include_router(free_play_handlers.router)
    dp.include_router(user_handlers.router)

    # Запуск планировщика закрытия неактивных экранов
    scheduler = await start_scheduler(views)

    try:
        logger.info("Бот успешно запущен")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        scheduler.shutdown()
        views.close_all()
        services.close()
        await bot.session.close()
        logger.info("Бот остановлен")


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Бот остановлен пользователем")
    except Exception as e:
        logger.error(f"Критическая ошибка: {e}", exc_info=True)
