from jobmonitor.config import RC_FILE_HELP

ENVIRONMENT_HELP = """\
Environment:
    JOBMONITOR_API_BASE_URL  Job proxy base URL, overrides "api.base url"
    JOBMONITOR_STATE_DIR     Default for --state-dir
    USER                     Default for "api.user id"
"""


def binDescriptionWithStandardFooter(desc):
    return """{desc}


Configuration:
    The default configuration file location is `~/.config/gracejobrc`, but can
    be overwritten using the --rc-file option. The tracked job is kept under
    <state-dir>/jobs/<slot>.json and saved model configurations in
    <state-dir>/models.json.

{rcfile}
{environment}""".format(desc=desc.strip(), rcfile=RC_FILE_HELP,
                        environment=ENVIRONMENT_HELP)
