import logging
import os
import sys

# stderr threshold by number of -v flags
_STDERR_LEVELS = [logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG]


def getLogger(name):
    return logging.getLogger(name)


def setup(logDir, debugLogFileName, debug=False, verbosity=0):
    """
    With debug, log everything to <logDir>/<debugLogFileName>.log. Otherwise
    log errors to stderr, one level lower per verbosity step.
    """
    fmt = (
        '+%(process)-6d %(levelname)-9s '
        '%(name)-20s %(filename)20s:%(lineno)-5d '
        '[%(asctime)s] %(message)s')
    if debug:
        logFileName = os.path.join(logDir, debugLogFileName + ".log")
        logging.basicConfig(
            filename=logFileName,
            level=logging.DEBUG,
            format=fmt)
    else:
        verbosity = min(max(verbosity, 0), len(_STDERR_LEVELS) - 1)
        logging.basicConfig(
            stream=sys.stderr, level=_STDERR_LEVELS[verbosity], format=fmt)
        # urllib3 logs every pooled connection
        logging.getLogger("urllib3").setLevel(logging.WARNING)
