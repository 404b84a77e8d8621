from huis.common.enum import BaseEnum


class RoleEnum(BaseEnum):
    ADMIN = 'admin'
    TEACHER = 'teacher'
    STUDENT = 'student'
