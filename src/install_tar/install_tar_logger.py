"""
Wrapper over the standard logging module, emitting one JSON line per log call.
"""

import inspect
import json
import logging

from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the install-tar log
    """

    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class InstallTarLogger:
    """
    Logger class
    """

    def __init__(self, name: str = "install_tar") -> None:
        self.logger = logging.getLogger(name)

    def log(self, debug_message: str, level: int) -> None:
        """
        Log the message, tagged with the file, function and line of the caller
        """
        debug_message = debug_message.replace("\n", " ")

        curframe = inspect.currentframe()
        calframe = inspect.getouterframes(curframe, 2)

        caller_file = calframe[1].filename.split("/")[-1]
        caller_line = calframe[1].lineno
        caller_name = calframe[1].function

        self.logger.log(
            level=level,
            msg=json.dumps(
                LogLine(
                    caller_file=caller_file,
                    caller_name=caller_name,
                    caller_line=caller_line,
                    message=debug_message,
                ).model_dump()
            ),
        )
