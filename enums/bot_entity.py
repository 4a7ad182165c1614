from enum import Enum


class BotEntity(Enum):
    USER = "user"
    COMMON = "common"
