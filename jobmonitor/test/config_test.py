import os
import tempfile
import unittest

from mock import MagicMock, patch

from jobmonitor import config

from .helpers import USER, resetEnv

HOME = '/home/me'

EXAMPLE_RCFILE = """\
[api]
base url = https://grace-proxy.example.edu
user id = someone
submit timeout = 30
[api.headers]
X-Team = goal-a
[poll]
base interval = 60
max interval = 240
request timeout = 200
restore delay = 0.5
[storage]
slot = scepterdrn
"""

BAD_SECTION = """\
[unknown]
"""


def setUpModule():
    resetEnv()
    os.environ['HOME'] = HOME


class TestMixin(object):
    @staticmethod
    def config(tempFp=None):
        options = MagicMock()
        options.rcFile = tempFp.name if tempFp else '/a-file-does-not-exist.cfg'
        options.stateDir = '~/x'
        return config.Config(options)

    @staticmethod
    def rcFile(text):
        tempFp = tempfile.NamedTemporaryFile(mode='w')
        tempFp.write(text)
        tempFp.flush()
        return tempFp


class TestRcParser(unittest.TestCase, TestMixin):
    def tearDown(self):
        os.environ.pop('JOBMONITOR_API_BASE_URL', None)

    @patch('os.makedirs')
    def testStateDir(self, _makedirs):
        cfgObj = self.config()
        self.assertEqual(os.path.join(HOME, 'x'), cfgObj.stateDir)
        self.assertEqual(os.path.join(HOME, 'x/jobs'), cfgObj.jobsDir)
        self.assertEqual(os.path.join(HOME, 'x/log'), cfgObj.logDir)
        self.assertEqual(os.path.join(HOME, 'x/models.json'),
                         cfgObj.savedModelsFile)

    # pylint: disable-msg=too-many-arguments
    def assertCfg(self, cfgObj, baseUrl='', userId=USER, submitTimeout=60.0,
                  headers=None, baseInterval=300.0, maxInterval=900.0,
                  requestTimeout=180.0, restoreDelay=2.0, slot='default'):
        self.assertEqual(baseUrl, cfgObj.baseUrl)
        self.assertEqual(userId, cfgObj.userId)
        self.assertEqual(submitTimeout, cfgObj.submitTimeout)
        self.assertEqual(headers or {}, cfgObj.headers)
        self.assertEqual(baseInterval, cfgObj.baseInterval)
        self.assertEqual(maxInterval, cfgObj.maxInterval)
        self.assertEqual(requestTimeout, cfgObj.requestTimeout)
        self.assertEqual(restoreDelay, cfgObj.restoreDelay)
        self.assertEqual(slot, cfgObj.slot)

    def testNoFile(self):
        cfgObj = self.config()
        self.assertCfg(cfgObj)

    def testEmptyFile(self):
        with self.rcFile("") as tempFp:
            cfgObj = self.config(tempFp)
            self.assertCfg(cfgObj)

    def testConfigured(self):
        with self.rcFile(EXAMPLE_RCFILE) as tempFp:
            cfgObj = self.config(tempFp)
            self.assertCfg(
                cfgObj, baseUrl='https://grace-proxy.example.edu',
                userId='someone', submitTimeout=30.0,
                headers={'x-team': 'goal-a'}, baseInterval=60.0,
                maxInterval=240.0, requestTimeout=200.0, restoreDelay=0.5,
                slot='scepterdrn')

    def testEnvironmentBaseUrl(self):
        os.environ['JOBMONITOR_API_BASE_URL'] = 'http://localhost:8000'
        with self.rcFile(EXAMPLE_RCFILE) as tempFp:
            cfgObj = self.config(tempFp)
            self.assertEqual('http://localhost:8000', cfgObj.baseUrl)

    def testHeadersAreCopies(self):
        with self.rcFile(EXAMPLE_RCFILE) as tempFp:
            cfgObj = self.config(tempFp)
            cfgObj.headers['x-team'] = 'changed'
            self.assertEqual({'x-team': 'goal-a'}, cfgObj.headers)


class TestMalformedRcFile(unittest.TestCase, TestMixin):
    def testBadSection(self):
        with self.rcFile(EXAMPLE_RCFILE + BAD_SECTION) as tempFp:
            pattern = r'unknown configuration sections: unknown'
            with self.assertRaisesRegex(config.ConfigError, pattern):
                self.config(tempFp)

    def testBadOption(self):
        with self.rcFile(EXAMPLE_RCFILE + "xyz = foo\n") as tempFp:
            pattern = r'unknown configuration options in section "storage": xyz'
            with self.assertRaisesRegex(config.ConfigError, pattern):
                self.config(tempFp)

    def testBadSeconds(self):
        for value in ('soon', '0', '-5'):
            with self.rcFile("[poll]\nrequest timeout = %s\n" % value) as tempFp:
                pattern = (r'invalid "poll.request timeout" setting %s.\s*'
                           r'Expected a positive number' % value)
                with self.assertRaisesRegex(config.ConfigError, pattern):
                    self.config(tempFp)

    def testMaxBelowBase(self):
        with self.rcFile("[poll]\nbase interval = 600\n"
                         "max interval = 300\n") as tempFp:
            with self.assertRaisesRegex(config.ConfigError, 'smaller than'):
                self.config(tempFp)
