"""
Планировщик периодических задач
"""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from handlers.views import ViewRegistry

logger = logging.getLogger(__name__)


async def cleanup_views_job(views: ViewRegistry):
    """Задача закрытия экранов бронирования без активности"""
    try:
        closed_count = views.close_expired(settings.VIEW_TIMEOUT_MINUTES)
        if closed_count > 0:
            logger.info(f"Закрыто {closed_count} неактивных экранов бронирования")
    except Exception as e:
        logger.error(f"Ошибка при закрытии экранов: {e}", exc_info=True)


async def start_scheduler(views: ViewRegistry) -> AsyncIOScheduler:
    """Запуск планировщика задач"""
    scheduler = AsyncIOScheduler()

    # Очистка экранов каждые 2 минуты
    scheduler.add_job(
        cleanup_views_job,
        trigger=IntervalTrigger(minutes=2),
        args=[views],
        id='cleanup_views',
        name='Закрытие неактивных экранов',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Планировщик задач запущен")

    return scheduler
