"""
Состояния для FSM (Finite State Machine)
"""
from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """Состояния процесса бронирования"""
    choosing_date = State()
    choosing_time = State()
    choosing_people = State()
    choosing_game = State()
    entering_game = State()
    entering_phone = State()
    confirming = State()


class FreePlayStates(StatesGroup):
    """Запись за стол свободной игры"""
    entering_phone = State()
