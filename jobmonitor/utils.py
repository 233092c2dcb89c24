import datetime
import logging

import chardet
import dateutil.parser
import dateutil.tz

DATETIME_FMT = "%a %b %e, %Y %X %Z"

LOG = logging.getLogger(__name__)


def strForEach(value):
    try:
        return str(value)
    except (UnicodeDecodeError, UnicodeEncodeError):
        LOG.debug("%r", value, exc_info=1)
        return '{!r}'.format(value)


def sprint(*args, **kwargs):
    """sprint: "safe" print - ignore IOError"""
    try:
        print(*list(map(strForEach, args)), **kwargs)
    except IOError:
        LOG.debug("sprint ignore IOError", exc_info=1)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print('codec error', repr(args))
        LOG.debug("%r", args, exc_info=1)


def utcNow():
    return datetime.datetime.now(dateutil.tz.tzutc())


def dateTimeToJson(dtObj):
    if dtObj is None:
        return None
    return dtObj.astimezone(dateutil.tz.tzutc()).isoformat()


def dateTimeFromJson(dtJson):
    if dtJson is None:
        return None
    dtObj = dateutil.parser.isoparse(dtJson)
    if dtObj.tzinfo is None:
        dtObj = dtObj.replace(tzinfo=dateutil.tz.tzutc())
    return dtObj


def dateTimeStr(dtObj):
    if dtObj is None:
        return "never"
    return dtObj.astimezone(dateutil.tz.tzlocal()).strftime(DATETIME_FMT)


def autoDecode(byteArray):
    if not byteArray:
        return ""
    detected = chardet.detect(byteArray)
    encoding = detected['encoding']
    if encoding is None or detected['confidence'] < 0.5:  # very arbitrary
        encoding = 'utf-8'
    return byteArray.decode(encoding, errors='replace')
