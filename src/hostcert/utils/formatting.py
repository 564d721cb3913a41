# hostcert/utils/formatting.py

from __future__ import annotations

from hostcert.constants import COLOUR, COLOUR_BRIGHT, COLOUR_RESET
from hostcert.constants import COLOUR_ERROR, COLOUR_OK, COLOUR_WARNING
from hostcert.constants import STATUS_COLUMN

def title(text: str, level: int=1, extra=None) -> None:
    """
    Prints a title in a consistant format

    Args:
        text (str): The text to be displayed
        level (int):  The level of heading (optional)
        extra (str): Decoration (level 1) or highlighted suffix (level 2)
    """

    reset = COLOUR_RESET

    if level == 1:
        if extra is None:
            extra = '---===oooO'

        print(f"{extra} {COLOUR['bold_yellow']}{text}{reset} {extra[::-1]}\n")

    elif level == 2:
        if extra is not None:
            print(f"{COLOUR['bold_yellow']}{text}{reset} [ {COLOUR_BRIGHT}{extra}{reset} ]\n")
        else:
            print(f"{COLOUR['bold_yellow']}{text}{reset}\n")

    elif level == 3:
        print(f"{COLOUR['bold_white']}{text}{reset}\n")

    elif level == 9:
        print(f'{text}...', end='')

    else:
        print(f"{COLOUR['cyan']}{text}{reset}\n")

def print_result(success, *, ok_msg='  OK  ', failed_msg='FAILED') -> bool:
    """
    Prints a ANSI success or failure message in a RedHat theme

    Args:
        success (bool): Success test condition
        ok_msg (str): OK message text
        failed_msg (str): Failed message text
    """

    if success:
        print_status(ok_msg, COLOUR_OK)
    else:
        print_status(failed_msg, COLOUR_ERROR)

    return success

def print_status(msg: str, colour: str) -> None:
    """ Print a bracketed status tag aligned to the status column """

    column = f'\033[{STATUS_COLUMN}G'

    print(f'{column}[ {colour}{msg}{COLOUR_RESET} ]')

def error(text: str) -> None:
    """
    Prints an error message with custom formatting.

    Args:
        text (str): The error message to be displayed.
    """

    print(f"{COLOUR_ERROR}Error:{COLOUR_RESET} {text}")

def warning(text: str) -> None:
    """
    Prints a warning message with custom formatting.

    Args:
        text (str): The warning message to be displayed.
    """

    print(f"⚠️ {COLOUR_WARNING}Warning:{COLOUR_RESET} {text}")
