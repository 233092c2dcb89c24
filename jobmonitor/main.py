#!/usr/bin/env python
import argparse
import os
import sys

import simplejson as json

import jobmonitor.logging

from .api import ApiClient
from .argparse import addArgumentParserBaseFlags
from .binutils import binDescriptionWithStandardFooter
from .config import Config, ConfigError
from .jobtypes import ValidationError
from .plugins import JobTypes, UnknownJobTypeError
from .repository import FileJobStateRepository, SavedModelRepository
from .scheduler import EventLoopScheduler
from .service_layer import (
    BackoffController,
    JobMonitor,
    JobSubmitter,
    MonitorStateError,
    StatusPoller,
    SubmissionError,
)
from .utils import dateTimeStr, sprint

_DEBUG_LOG_FILE_NAME = "gracejob-debug"
LOG = jobmonitor.logging.getLogger(__name__)

DESC = binDescriptionWithStandardFooter("""
gracejob - Submit simulation jobs to the cluster and follow them to completion

The tracked job survives restarts: `gracejob watch` (or `status`) picks up where
the last invocation left off, for up to 24 hours after the last status update.
Status checks may block on SSH + Duo approval on the cluster side, so automatic
checks are spaced minutes apart.

Examples:
    # Submit a SCEPTER+DRN job and follow it
    $ gracejob submit SCEPTER+DRN -p location="41.31, -72.92" -p feedstock=basalt \\
        -p particleSize=100 -p applicationRate=10 -p targetPH=7 --watch

    # Check the tracked job right now
    $ gracejob status

    # Forget the tracked job so another can be submitted
    $ gracejob reset
""")

OK = 0
ERROR = 1


def _keyValue(text):
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(
            "expected key=value, got {!r}".format(text))
    return key.strip(), value.strip()


def parseArgs(args=None):
    if args is None:
        prog = sys.argv[0]
        args = sys.argv[1:]
    else:
        prog = None

    # pylint: disable=invalid-name
    ap = argparse.ArgumentParser(
        prog=os.path.basename(prog) if prog else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESC)
    addArgumentParserBaseFlags(ap, _DEBUG_LOG_FILE_NAME)
    sub = ap.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    submit = sub.add_parser("submit", help="Submit a new job and track it")
    submit.add_argument("model", nargs="?",
                        help="Job type (see `gracejob types`)")
    submit.add_argument("-p", "--param", dest="params", type=_keyValue,
                        action="append", default=[], metavar="KEY=VALUE",
                        help="Model parameter (repeatable)")
    submit.add_argument("-f", "--params-file", dest="paramsFile",
                        help="JSON file with model parameters")
    submit.add_argument("--saved", metavar="ID",
                        help="Start from a saved model configuration")
    submit.add_argument("--save", metavar="NAME", nargs="?", const="",
                        help="Also save the configuration (optionally named)")
    submit.add_argument("-w", "--watch", action="store_true",
                        help="Keep checking until the job finishes")

    sub.add_parser("status", help="Check the tracked job's status now")
    sub.add_parser("show", help="Show the tracked job without contacting "
                   "the server")
    sub.add_parser("watch", help="Check the tracked job periodically until "
                   "it finishes")
    sub.add_parser("reset", help="Forget the tracked job")
    sub.add_parser("types", help="List known job types")

    saved = sub.add_parser("saved", help="Manage saved model configurations")
    saved.add_argument("action", choices=["list", "show", "delete"])
    saved.add_argument("modelId", nargs="?", metavar="ID")

    return ap.parse_args(args)


def buildMonitor(config, scheduler, onUpdate=None):
    api = ApiClient.fromConfig(config)
    return JobMonitor(
        JobSubmitter(api, timeout=config.submitTimeout),
        StatusPoller(api, timeout=config.requestTimeout),
        FileJobStateRepository(config.jobsDir, config.slot),
        scheduler,
        backoff=BackoffController(config.baseInterval, config.maxInterval),
        restoreDelay=config.restoreDelay,
        onUpdate=onUpdate,
    )


def showRecord(record, verbose=False):
    if record is None:
        sprint("No job is being tracked.")
        return
    sprint(record)
    if record.message:
        sprint(record.message)
    if record.error:
        sprint("Error:", record.error)
    sprint("Last checked:", dateTimeStr(record.last_checked_at))
    if record.logs:
        lines = record.logs if verbose else record.logs[-10:]
        if len(lines) < len(record.logs):
            sprint("Logs (last {} of {} lines, -v for all):".format(
                len(lines), len(record.logs)))
        else:
            sprint("Logs:")
        for line in lines:
            sprint("  " + line)


def _collectParams(opts, savedModels, userId):
    params = {}
    model = opts.model
    if opts.saved:
        savedModel = savedModels.get(userId, opts.saved)
        if savedModel is None:
            raise ValueError("no saved model configuration {!r}".format(opts.saved))
        params.update(savedModel.get("parameters") or {})
        model = model or savedModel.get("model")
    if opts.paramsFile:
        with open(opts.paramsFile, encoding="utf-8") as paramsFile:
            fileParams = json.load(paramsFile)
        if not isinstance(fileParams, dict):
            raise ValueError("{}: expected a JSON object".format(opts.paramsFile))
        params.update(fileParams)
    params.update(dict(opts.params))
    if not model:
        raise ValueError("no job type given")
    return model, params


def _watch(monitor, scheduler, verbose):
    if not monitor.polling:
        return OK
    sprint("Watching job {} (Ctrl-C to stop; the job keeps running)".format(
        monitor.job_id))
    try:
        scheduler.run()
    except KeyboardInterrupt:
        sprint("\n(Stop watching): {}".format(monitor.record))
        monitor.dispose()
        return OK
    showRecord(monitor.record, verbose)
    return OK


def cmdSubmit(opts, config, monitor, scheduler):
    jobTypes = JobTypes()
    savedModels = SavedModelRepository(config.savedModelsFile)
    model, params = _collectParams(opts, savedModels, config.userId)
    jobType = jobTypes.get(model)

    record = monitor.submit(jobType, params, config.userId)
    if opts.save is not None:
        stored = savedModels.save(config.userId, {
            "name": opts.save or jobType.defaultConfigName(params),
            "model": jobType.name,
            "location": params.get("location"),
            "status": "saved",
            "parameters": params,
        })
        if stored is None:
            sprint("Warning: failed to save model configuration",
                   file=sys.stderr)
        else:
            sprint("Saved configuration", stored["id"])
    if opts.watch:
        return _watch(monitor, scheduler, opts.verbose)
    LOG.debug("submitted %s, not watching", record)
    return OK


def cmdStatus(opts, _config, monitor, _scheduler):
    if monitor.record is not None and monitor.record.is_active():
        sprint("Checking job {} (may wait for Duo approval)...".format(
            monitor.job_id))
        monitor.check_now()
    monitor.dispose()
    showRecord(monitor.record, opts.verbose)
    return OK


def cmdShow(opts, _config, monitor, _scheduler):
    monitor.dispose()
    showRecord(monitor.record, opts.verbose)
    return OK


def cmdWatch(opts, _config, monitor, scheduler):
    if monitor.record is None:
        showRecord(None)
        return ERROR
    if not monitor.polling:
        showRecord(monitor.record, opts.verbose)
        return OK
    return _watch(monitor, scheduler, opts.verbose)


def cmdReset(_opts, _config, monitor, _scheduler):
    jobId = monitor.job_id
    monitor.reset()
    sprint("Forgot job {}".format(jobId) if jobId else "No job was tracked.")
    return OK


def cmdTypes(_opts, _config, _monitor, _scheduler):
    for jobType in JobTypes().all():
        sprint("{:<14} {}".format(jobType.name, jobType.description))
    return OK


def cmdSaved(opts, config, _monitor, _scheduler):
    savedModels = SavedModelRepository(config.savedModelsFile)
    if opts.action == "list":
        for model in savedModels.list(config.userId):
            sprint("{id}  {model:<12} {name}".format(
                id=model.get("id"), model=model.get("model", "?"),
                name=model.get("name", "")))
        return OK
    if not opts.modelId:
        sprint("Error: saved {} requires an ID".format(opts.action),
               file=sys.stderr)
        return ERROR
    if opts.action == "show":
        model = savedModels.get(config.userId, opts.modelId)
        if model is None:
            sprint("Error: no saved model", opts.modelId, file=sys.stderr)
            return ERROR
        sprint(json.dumps(model, indent=2, sort_keys=True))
        return OK
    if not savedModels.delete(config.userId, opts.modelId):
        sprint("Error: could not delete", opts.modelId, file=sys.stderr)
        return ERROR
    sprint("Deleted", opts.modelId)
    return OK


COMMANDS = {
    "submit": cmdSubmit,
    "status": cmdStatus,
    "show": cmdShow,
    "watch": cmdWatch,
    "reset": cmdReset,
    "types": cmdTypes,
    "saved": cmdSaved,
}


def impl_main(args=None):
    opts = parseArgs(args)
    config = Config(opts)
    jobmonitor.logging.setup(
        config.logDir,
        _DEBUG_LOG_FILE_NAME,
        debug=opts.debug,
        verbosity=len(opts.verbose or []))
    LOG.debug("starting with args %s", opts)
    if not config.baseUrl:
        LOG.warning("no API base url configured")

    scheduler = EventLoopScheduler()

    def onUpdate(record):
        if opts.command in ("submit", "watch") and record is not None:
            sprint("[{}] {}".format(dateTimeStr(record.saved_at), record.message))

    monitor = buildMonitor(config, scheduler, onUpdate=onUpdate)
    monitor.start()
    return COMMANDS[opts.command](opts, config, monitor, scheduler)


def main(args=None):
    try:
        return impl_main(args=args)
    except (ConfigError, ValidationError, SubmissionError, MonitorStateError,
            UnknownJobTypeError, ValueError, OSError) as error:
        print("Error:", error, file=sys.stderr)
        return ERROR


if __name__ == '__main__':
    sys.exit(main())
