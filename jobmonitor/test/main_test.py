import os
import shutil
import tempfile
import unittest

from mock import MagicMock, patch
import requests

from jobmonitor.main import DESC, main, parseArgs
from jobmonitor.repository import SavedModelRepository
from jobmonitor.scheduler import EventLoopScheduler

from .helpers import ManualTime, USER, capturedOutput, resetEnv

DRN_ARGS = ["submit", "DRN", "-p", "location=40.1, -88.2"]


def _posted(jobId="42"):
    response = MagicMock(['status_code', 'text', 'ok'])
    response.status_code = 200
    response.ok = True
    response.text = '{"job_id": "%s"}' % jobId
    return response


def _status(body, status_code=200):
    response = MagicMock(['status_code', 'content'])
    response.status_code = status_code
    response.content = body
    return response


class MainTest(unittest.TestCase):
    def setUp(self):
        resetEnv()
        self.stateDir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.stateDir)

        self.session = MagicMock(requests.Session)
        self.session.headers = {}
        self.session.post.return_value = _posted()
        self._patch("jobmonitor.api.requests.Session", return_value=self.session)
        self._patch("jobmonitor.logging.setup")

        self.clock = ManualTime()
        self._patch("jobmonitor.main.EventLoopScheduler",
                    side_effect=lambda: EventLoopScheduler(
                        timefunc=self.clock.time, delayfunc=self.clock.sleep))

    def _patch(self, *args, **kwargs):
        patcher = patch(*args, **kwargs)
        self.addCleanup(patcher.stop)
        return patcher.start()

    def run_main(self, *args):
        argv = ["-d", self.stateDir, "--rc-file", "/a-file-does-not-exist.cfg"]
        with capturedOutput() as (out, err):
            ret = main(argv + list(args))
        return ret, out.getvalue(), err.getvalue()

    def testSubmitShowReset(self):
        ret, out, _ = self.run_main(*DRN_ARGS)
        self.assertEqual(0, ret)
        self.assertIn("DRN job submitted successfully! Job ID: 42", out)
        url = self.session.post.call_args[0][0]
        payload = self.session.post.call_args[1]["json"]
        self.assertEqual("/api/run-job", url)
        self.assertEqual("DRN", payload["model"])
        self.assertEqual(USER, payload["user_id"])

        ret, out, _ = self.run_main("show")
        self.assertEqual(0, ret)
        self.assertIn("DRN [42] Submitted", out)
        self.assertIn("Last checked: never", out)

        ret, _, err = self.run_main(*DRN_ARGS)
        self.assertEqual(1, ret)
        self.assertIn("already tracked", err)
        self.assertEqual(1, self.session.post.call_count)

        ret, out, _ = self.run_main("reset")
        self.assertEqual(0, ret)
        self.assertIn("Forgot job 42", out)

        _, out, _ = self.run_main("show")
        self.assertIn("No job is being tracked.", out)
        self.session.get.assert_not_called()

    def testStatus(self):
        self.run_main(*DRN_ARGS)
        self.session.get.return_value = _status(
            b'{"status": "completed", "logs": ["step 1", "done"]}')

        ret, out, _ = self.run_main("status")
        self.assertEqual(0, ret)
        self.assertIn("DRN [42] Completed", out)
        self.assertIn("  done", out)
        self.session.get.assert_called_once_with(
            "/api/check-job-status/42", timeout=180.0)

        # Finished jobs are shown, not re-checked.
        self.run_main("status")
        self.assertEqual(1, self.session.get.call_count)

    def testStatusCheckFailureKeepsJob(self):
        self.run_main(*DRN_ARGS)
        self.session.get.side_effect = requests.Timeout("read timed out")

        ret, out, _ = self.run_main("status")
        self.assertEqual(0, ret)
        self.assertIn("DRN [42] Submitted", out)
        self.assertIn("Retrying automatically", out)

    def testSubmitAndWatch(self):
        self.session.get.side_effect = [
            _status(b'{"status": "running", "logs": ["step 1"]}'),
            _status(b'{"status": "completed", "logs": ["step 1", "done"]}'),
        ]
        ret, out, _ = self.run_main(*(DRN_ARGS + ["--watch"]))
        self.assertEqual(0, ret)
        self.assertIn("Watching job 42", out)
        self.assertIn("Job 42 is currently running...", out)
        self.assertIn("Job 42 completed successfully!", out)
        self.assertEqual(600.0, self.clock.now)

    def testWatchRestoredJob(self):
        self.run_main(*DRN_ARGS)
        self.session.get.return_value = _status(
            b'{"status": "failed", "error": "Out of memory"}')

        ret, out, _ = self.run_main("watch")
        self.assertEqual(0, ret)
        self.assertIn("DRN [42] Failed (Out of memory)", out)
        self.assertEqual(2.0, self.clock.now)

    def testWatchNothing(self):
        ret, out, _ = self.run_main("watch")
        self.assertEqual(1, ret)
        self.assertIn("No job is being tracked.", out)

    def testValidationError(self):
        ret, _, err = self.run_main("submit", "DRN", "-p", "numStart=0")
        self.assertEqual(1, ret)
        self.assertIn("Please select a location first", err)
        self.assertIn("numStart must be at least 1", err)
        self.session.post.assert_not_called()

    def testUnknownType(self):
        ret, _, err = self.run_main("submit", "RothC", "-p", "location=1, 2")
        self.assertEqual(1, ret)
        self.assertIn("unknown job type 'RothC'", err)

    def testRejectedSubmission(self):
        response = _posted()
        response.status_code = 400
        response.ok = False
        response.text = '{"error": "cluster is down for maintenance"}'
        self.session.post.return_value = response

        ret, _, err = self.run_main(*DRN_ARGS)
        self.assertEqual(1, ret)
        self.assertIn("cluster is down for maintenance", err)
        _, out, _ = self.run_main("show")
        self.assertIn("No job is being tracked.", out)

    def testTypes(self):
        ret, out, _ = self.run_main("types")
        self.assertEqual(0, ret)
        for name in ("SCEPTER", "DRN", "SCEPTER+DRN", "ATS"):
            self.assertIn(name, out)

    def testSavedModels(self):
        ret, out, _ = self.run_main(*(DRN_ARGS + ["-p", "numEnd=12",
                                                  "--save", "river site"]))
        self.assertEqual(0, ret)
        saved = SavedModelRepository(
            os.path.join(self.stateDir, "models.json")).list(USER)
        self.assertEqual(1, len(saved))
        modelId = saved[0]["id"]
        self.assertIn("Saved configuration " + modelId, out)
        self.assertEqual("DRN", saved[0]["model"])
        self.assertEqual({"location": "40.1, -88.2", "numEnd": "12"},
                         saved[0]["parameters"])

        _, out, _ = self.run_main("saved", "list")
        self.assertIn("river site", out)
        _, out, _ = self.run_main("saved", "show", modelId)
        self.assertIn('"name": "river site"', out)

        self.run_main("reset")
        self.session.post.return_value = _posted("43")
        ret, out, _ = self.run_main("submit", "--saved", modelId)
        self.assertEqual(0, ret)
        self.assertIn("DRN job submitted successfully! Job ID: 43", out)
        payload = self.session.post.call_args[1]["json"]
        self.assertEqual(12, payload["parameters"]["numEnd"])

        self.assertEqual(0, self.run_main("saved", "delete", modelId)[0])
        self.assertEqual(1, self.run_main("saved", "delete", modelId)[0])
        self.assertEqual(1, self.run_main("saved", "show")[0])

    def testDefaultSaveName(self):
        self.run_main(*(DRN_ARGS + ["--save"]))
        saved = SavedModelRepository(
            os.path.join(self.stateDir, "models.json")).list(USER)
        self.assertEqual("DRN - 40.100, -88.200", saved[0]["name"])


def testParseArgsDefaults():
    resetEnv()
    opts = parseArgs(["status"])
    assert opts.command == "status"
    assert opts.stateDir == "/tmp/BADDIR"
    assert opts.rcFile == "~/.config/gracejobrc"
    assert not opts.debug


def testDescriptionFooter():
    assert "[poll]" in DESC
    assert "JOBMONITOR_API_BASE_URL" in DESC
    assert "<state-dir>/jobs/<slot>.json" in DESC
