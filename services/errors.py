"""
Ошибки бизнес-логики
"""


class ValidationError(ValueError):
    """Некорректный ввод пользователя, обнаруженный до обращения к хранилищу"""


class BookingRuleError(Exception):
    """Нарушение бизнес-правила, обнаруженное по текущему состоянию"""


class TableNotFoundError(BookingRuleError):
    def __init__(self, table_id: str):
        super().__init__("La mesa no existe")
        self.table_id = table_id


class AlreadySignedUpError(BookingRuleError):
    def __init__(self, table_id: str, user_id: int):
        super().__init__("Ya estás anotado en esta mesa")
        self.table_id = table_id
        self.user_id = user_id


class TableFullError(BookingRuleError):
    def __init__(self, table_id: str):
        super().__init__("La mesa ya está completa")
        self.table_id = table_id


class SlotUnavailableError(BookingRuleError):
    def __init__(self, date: str, time: str):
        super().__init__("No hay mesas disponibles para este horario")
        self.date = date
        self.time = time
