from enum import StrEnum


class ParticipantType(StrEnum):
    MEMBER = 'member'
    GUEST = 'guest'
