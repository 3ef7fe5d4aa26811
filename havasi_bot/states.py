from aiogram.fsm.state import State, StatesGroup


class LoginStates(StatesGroup):
    waiting_token = State()


class SearchStates(StatesGroup):
    typing = State()


class AddNotificationStates(StatesGroup):
    name = State()
    kind = State()
    email = State()
    url = State()
    webhook_id = State()
    discord_token = State()
    building_type = State()
    transaction_type = State()
    size = State()
    price = State()
    sub_types = State()
    confirm = State()
