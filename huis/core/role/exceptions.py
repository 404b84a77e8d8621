from huis.common.exceptions import InternalException


class RoleLookupFailed(InternalException):
    """
    The role directory could not be reached in time
    """

    ...
