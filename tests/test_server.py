"""Unit tests for studylog server adapters."""

import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

from core.config import COMPLETED_STATUS
from core.errors import GraderUnavailable, TransientSyncFailure
from core.models import DailyRecord, WordEntry, pad_words
from server.file_storage import FileStorage
from server.gemini_grader import GeminiGrader
from server.postgres_storage import PostgresStorage
from server.sheet_gateway import SheetGateway, build_insert_payload


URL = 'https://script.example.com/exec'


def make_response(status: int = 200, body=None, raw: bytes = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body).encode('utf-8') if body is not None else b''
    return response


def make_record() -> DailyRecord:
    words = pad_words([WordEntry('run', '뛰다'), WordEntry('walk', ''), WordEntry('', '빈칸')])
    return DailyRecord('2024-03-01', '10-15', words, 'news', True)


class TestBuildInsertPayload(unittest.TestCase):
    """Tests for the insert request body."""

    def test_payload_contains_filled_words_only(self):
        payload = build_insert_payload(make_record())
        self.assertEqual(payload['action'], 'insert')
        self.assertEqual(payload['date'], '2024-03-01')
        self.assertEqual(payload['page'], '10-15')
        self.assertEqual(payload['news'], 'news')
        self.assertEqual(payload['status'], COMPLETED_STATUS)
        self.assertEqual(payload['words'], [
            {'word': 'run', 'meaning': '뛰다'},
            {'word': 'walk', 'meaning': ''}
        ])


class TestSheetGateway(unittest.TestCase):
    """Tests for SheetGateway with a mocked HTTP session."""

    def setUp(self):
        self.gateway = SheetGateway(URL)
        self.gateway.session = MagicMock()

    def test_fetch_all_reads_array_rows(self):
        rows = [['날짜', '페이지', '영어단어', '의미'], ['d', 'p', 'run', '뛰다']]
        self.gateway.session.get.return_value = make_response(body=rows)
        self.assertEqual(self.gateway.fetch_all(), rows)

        args, kwargs = self.gateway.session.get.call_args
        self.assertEqual(args[0], URL)
        self.assertEqual(kwargs['params']['action'], 'read')
        self.assertIn('t', kwargs['params'])

    def test_fetch_all_reads_data_wrapper(self):
        rows = [['h'], ['d', 'p', 'run', '뛰다']]
        self.gateway.session.get.return_value = make_response(body={'data': rows})
        self.assertEqual(self.gateway.fetch_all(), rows)

    def test_fetch_all_malformed_body_is_no_rows(self):
        self.gateway.session.get.return_value = make_response(raw=b'<html>oops</html>')
        self.assertEqual(self.gateway.fetch_all(), [])

    def test_fetch_all_empty_body_is_no_rows(self):
        self.gateway.session.get.return_value = make_response(raw=b'')
        self.assertEqual(self.gateway.fetch_all(), [])

    def test_fetch_all_http_error(self):
        self.gateway.session.get.return_value = make_response(status=500, body={})
        with self.assertRaises(TransientSyncFailure):
            self.gateway.fetch_all()

    def test_fetch_all_network_error(self):
        self.gateway.session.get.side_effect = requests.ConnectionError('down')
        with self.assertRaises(TransientSyncFailure):
            self.gateway.fetch_all()

    def test_append_posts_payload(self):
        self.gateway.append_record(make_record())
        args, kwargs = self.gateway.session.post.call_args
        self.assertEqual(args[0], URL)
        body = json.loads(kwargs['data'].decode('utf-8'))
        self.assertEqual(body, build_insert_payload(make_record()))

    def test_append_ignores_response_status(self):
        self.gateway.session.post.return_value = make_response(status=302)
        self.gateway.append_record(make_record())

    def test_append_network_error(self):
        self.gateway.session.post.side_effect = requests.Timeout('slow')
        with self.assertRaises(TransientSyncFailure):
            self.gateway.append_record(make_record())

    def test_set_endpoint(self):
        self.gateway.set_endpoint('https://other.example/exec')
        self.gateway.session.get.return_value = make_response(body=[])
        self.gateway.fetch_all()
        self.assertEqual(self.gateway.session.get.call_args[0][0], 'https://other.example/exec')


class TestGeminiGrader(unittest.TestCase):
    """Tests for GeminiGrader response handling."""

    def setUp(self):
        patcher = patch('server.gemini_grader.genai')
        self.genai = patcher.start()
        self.addCleanup(patcher.stop)
        self.grader = GeminiGrader(api_key='test-key')

    def test_configures_model(self):
        self.genai.configure.assert_called_once_with(api_key='test-key')
        self.assertEqual(self.grader.model_name, 'gemini-2.0-flash')

    def test_valid_response(self):
        text = '{"isCorrect": true, "feedback": "정답입니다!"}'
        with patch.object(self.grader, '_execute', return_value=(text, 120)):
            verdict = self.grader.grade('run', '뛰다', 'run', '달리다')
        self.assertEqual(verdict, {'isCorrect': True, 'feedback': '정답입니다!'})

    def test_fenced_response(self):
        text = '```json\n{"isCorrect": false, "feedback": "아쉬워요"}\n```'
        with patch.object(self.grader, '_execute', return_value=(text, 120)):
            verdict = self.grader.grade('run', '뛰다', 'rn', '뛰다')
        self.assertFalse(verdict['isCorrect'])

    def test_prompt_contains_answer(self):
        with patch.object(self.grader, '_execute',
                          return_value=('{"isCorrect": true, "feedback": "ok"}', 1)) as execute:
            self.grader.grade('apple', '사과', 'Apple', '사과')
        prompt = execute.call_args[0][0]
        self.assertIn('"apple"', prompt)
        self.assertIn('"Apple"', prompt)
        self.assertIn('"사과"', prompt)

    def test_unparseable_response(self):
        with patch.object(self.grader, '_execute', return_value=('not json at all', 100)):
            with self.assertRaises(GraderUnavailable):
                self.grader.grade('run', '뛰다', 'run', '뛰다')

    def test_missing_keys(self):
        with patch.object(self.grader, '_execute', return_value=('{"isCorrect": true}', 100)):
            with self.assertRaises(GraderUnavailable):
                self.grader.grade('run', '뛰다', 'run', '뛰다')

    def test_non_boolean_verdict(self):
        text = '{"isCorrect": "true", "feedback": "ok"}'
        with patch.object(self.grader, '_execute', return_value=(text, 100)):
            with self.assertRaises(GraderUnavailable):
                self.grader.grade('run', '뛰다', 'run', '뛰다')

    def test_request_failure(self):
        with patch.object(self.grader, '_execute', side_effect=RuntimeError('quota')):
            with self.assertRaises(GraderUnavailable):
                self.grader.grade('run', '뛰다', 'run', '뛰다')


class TestFileStorage(unittest.TestCase):
    """Tests for FileStorage."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.storage = FileStorage(
            config_file=os.path.join(self.tmp.name, 'config.json'),
            state_dir=self.tmp.name
        )

    def test_missing_value(self):
        self.assertIsNone(self.storage.load_value('study_history'))

    def test_save_and_load(self):
        self.storage.save_value('study_gas_url', URL)
        self.storage.save_value('study_history', [{'date': '2024-03-01', 'words': []}])
        self.assertEqual(self.storage.load_value('study_gas_url'), URL)
        self.assertEqual(self.storage.load_value('study_history'),
                         [{'date': '2024-03-01', 'words': []}])

    def test_corrupt_file_reads_as_empty(self):
        with open(os.path.join(self.tmp.name, 'studylog_state.json'), 'w') as f:
            f.write('{broken')
        self.assertIsNone(self.storage.load_value('study_history'))

    def test_load_config_missing(self):
        with self.assertRaises(FileNotFoundError):
            self.storage.load_config()

    def test_load_config(self):
        with open(os.path.join(self.tmp.name, 'config.json'), 'w') as f:
            json.dump({'gemini_api_key': 'abc'}, f)
        self.assertEqual(self.storage.load_config()['gemini_api_key'], 'abc')


class TestPostgresStorage(unittest.TestCase):
    """Tests for PostgresStorage with a mocked connection."""

    def setUp(self):
        patcher = patch('server.postgres_storage.psycopg2.connect')
        self.connect = patcher.start()
        self.addCleanup(patcher.stop)
        self.conn = MagicMock()
        self.conn.closed = False
        self.cursor = self.conn.cursor.return_value.__enter__.return_value
        self.connect.return_value = self.conn
        self.storage = PostgresStorage(db_url='postgresql://test/db')

    def test_creates_table_on_first_use(self):
        self.cursor.fetchone.return_value = None
        self.storage.load_value('study_history')
        self.connect.assert_called_once_with('postgresql://test/db')
        statements = [c[0][0] for c in self.cursor.execute.call_args_list]
        self.assertTrue(any('CREATE TABLE IF NOT EXISTS local_state' in s for s in statements))

    def test_load_value(self):
        self.cursor.fetchone.return_value = {'value': [{'date': '2024-03-01'}]}
        self.assertEqual(self.storage.load_value('study_history'), [{'date': '2024-03-01'}])

    def test_save_value_upserts(self):
        self.storage.save_value('study_gas_url', URL)
        sql, params = self.cursor.execute.call_args[0]
        self.assertIn('ON CONFLICT (key)', sql)
        self.assertEqual(params, ('study_gas_url', json.dumps(URL)))
        self.conn.commit.assert_called()


if __name__ == '__main__':
    unittest.main()
