import configparser
import os

RC_FILE_HELP = """\
Sample rcfile:
    [api]
    base url = https://grace-proxy.example.edu  # or $JOBMONITOR_API_BASE_URL
    user id = me  # default=$USER
    submit timeout = 60  # seconds
    [api.headers]
    X-Some-Header = value  # extra headers sent with every request
    [poll]
    base interval = 300  # seconds between status checks
    max interval = 900  # upper bound while status checks keep failing
    request timeout = 180  # must exceed the worst Duo 2FA delay
    restore delay = 2  # delay before the first check of a restored job
    [storage]
    slot = scepterdrn  # name of the job-tracking slot
"""

DEFAULT_BASE_INTERVAL = 5 * 60.0
DEFAULT_MAX_INTERVAL = 15 * 60.0
DEFAULT_REQUEST_TIMEOUT = 180.0
DEFAULT_SUBMIT_TIMEOUT = 60.0
DEFAULT_RESTORE_DELAY = 2.0
DEFAULT_SLOT = "default"


def _getConfig(cfgParser, section, option, defaultValue=None):
    if not cfgParser.has_section(section):
        return defaultValue
    if not cfgParser.has_option(section, option):
        return defaultValue
    return cfgParser.get(section, option)


def _getDictConfig(cfgParser, section):
    options = {}
    if not cfgParser.has_section(section):
        return options
    for option in cfgParser.options(section):
        options[option] = _getConfig(cfgParser, section, option, None)
    return options


def _getSecondsConfig(cfgParser, section, option, default):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    try:
        seconds = float(val)
    except ValueError:
        seconds = -1.0
    if seconds <= 0:
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  "
            "Expected a positive number of seconds".format(
                section=section,
                option=option,
                optionVal=val))
    return seconds


class ConfigError(Exception):
    pass


_VAR_OPTIONS = object()


class Config(object):
    # pylint: disable=too-many-instance-attributes
    validConfig = {
        'api': {'base url', 'user id', 'submit timeout'},
        'api.headers': _VAR_OPTIONS,
        'poll': {'base interval', 'max interval', 'request timeout',
                 'restore delay'},
        'storage': {'slot'},
    }

    def _validateConfigParser(self, cfgParser):
        cfgSections = set(cfgParser.sections())
        unknownSections = cfgSections - set(self.validConfig.keys())
        if unknownSections:
            raise ConfigError(
                "RC file has unknown configuration sections: {}".format(
                    ", ".join(sorted(unknownSections))))
        for section in cfgSections:
            cfgValues = set(cfgParser.options(section))
            validSectionConfig = self.validConfig[section]
            if validSectionConfig is not _VAR_OPTIONS:
                assert isinstance(validSectionConfig, set)
                unknownOptions = cfgValues - validSectionConfig
                if unknownOptions:
                    raise ConfigError(
                        "RC file has unknown configuration options in "
                        "section \"{}\": {}".format(
                            section, ", ".join(sorted(unknownOptions))))

    def __init__(self, options):
        stateDir = os.path.expanduser(options.stateDir)
        self.options = options
        self._stateDir = stateDir
        self._jobsDir = os.path.join(stateDir, "jobs")
        self._logDir = os.path.join(stateDir, "log")
        self._savedModelsFile = os.path.join(stateDir, "models.json")

        rcFile = os.path.expanduser(options.rcFile)
        cfgParser = configparser.RawConfigParser()
        cfgParser.read(rcFile)
        self._validateConfigParser(cfgParser)

        self._baseUrl = os.getenv(
            'JOBMONITOR_API_BASE_URL',
            _getConfig(cfgParser, 'api', 'base url', ''))
        self._userId = _getConfig(
            cfgParser, 'api', 'user id', os.getenv('USER') or 'anonymous')
        self._submitTimeout = _getSecondsConfig(
            cfgParser, 'api', 'submit timeout', DEFAULT_SUBMIT_TIMEOUT)
        self._headers = _getDictConfig(cfgParser, 'api.headers')

        self._baseInterval = _getSecondsConfig(
            cfgParser, 'poll', 'base interval', DEFAULT_BASE_INTERVAL)
        self._maxInterval = _getSecondsConfig(
            cfgParser, 'poll', 'max interval', DEFAULT_MAX_INTERVAL)
        if self._maxInterval < self._baseInterval:
            raise ConfigError(
                "RC file has \"poll.max interval\" ({}) smaller than "
                "\"poll.base interval\" ({})".format(
                    self._maxInterval, self._baseInterval))
        self._requestTimeout = _getSecondsConfig(
            cfgParser, 'poll', 'request timeout', DEFAULT_REQUEST_TIMEOUT)
        self._restoreDelay = _getSecondsConfig(
            cfgParser, 'poll', 'restore delay', DEFAULT_RESTORE_DELAY)

        self._slot = _getConfig(cfgParser, 'storage', 'slot', DEFAULT_SLOT)

    @property
    def verbose(self):
        return self.options.verbose

    @staticmethod
    def checkDir(dirName):
        if not os.access(dirName, os.W_OK | os.X_OK | os.R_OK):
            os.makedirs(dirName, exist_ok=True)
        return dirName

    @property
    def stateDir(self):
        return self._stateDir

    @property
    def jobsDir(self):
        return self.checkDir(self._jobsDir)

    @property
    def logDir(self):
        return self.checkDir(self._logDir)

    @property
    def savedModelsFile(self):
        self.checkDir(self._stateDir)
        return self._savedModelsFile

    @property
    def baseUrl(self):
        return self._baseUrl

    @property
    def userId(self):
        return self._userId

    @property
    def submitTimeout(self):
        return self._submitTimeout

    @property
    def headers(self):
        return dict(self._headers)

    @property
    def baseInterval(self):
        return self._baseInterval

    @property
    def maxInterval(self):
        return self._maxInterval

    @property
    def requestTimeout(self):
        return self._requestTimeout

    @property
    def restoreDelay(self):
        return self._restoreDelay

    @property
    def slot(self):
        return self._slot

