import contextlib
import io
import json
import os
import tempfile
import unittest
from orrery import build_parser, main


def run_cli(*argv):
    stdout = io.StringIO()
    with contextlib.redirect_stdout(stdout):
        exit_code = main(list(argv))
    return exit_code, stdout.getvalue()


class TestParser(unittest.TestCase):

    def test_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.system, 'sol')
        self.assertEqual(args.mode, 'explorational')
        self.assertEqual(args.repeat, 1)
        self.assertFalse(args.profile)

    def test_system_and_input_are_exclusive(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(['--system', 'sol', '--input', 'x.json'])


class TestMain(unittest.TestCase):

    def test_prints_layout_json(self):
        exit_code, out = run_cli('--system', 'sol', '--mode', 'navigational')
        self.assertEqual(exit_code, 0)
        output = json.loads(out)
        self.assertEqual(output['layout']['metadata']['view_mode'], 'navigational')
        self.assertIn('earth', output['layout']['results'])
        self.assertEqual(output['statistics']['total_calculations'], 1)
        self.assertNotIn('camera', output)

    def test_focus_adds_camera(self):
        exit_code, out = run_cli('--system', 'sol', '--focus', 'earth')
        self.assertEqual(exit_code, 0)
        camera = json.loads(out)['camera']
        self.assertEqual(len(camera['position']), 3)
        self.assertGreater(camera['distance'], 0.0)

    def test_unknown_focus_fails(self):
        with self.assertLogs(level='CRITICAL'):
            exit_code, out = run_cli('--system', 'sol', '--focus', 'vulcan')
        self.assertEqual(exit_code, 1)
        self.assertEqual(out, '')

    def test_partial_layout(self):
        exit_code, out = run_cli('--system', 'sol', '--partial', 'jupiter')
        self.assertEqual(exit_code, 0)
        results = json.loads(out)['layout']['results']
        self.assertEqual(set(results), {'sol', 'jupiter', 'io', 'europa', 'ganymede', 'callisto'})

    def test_repeat_hits_cache(self):
        exit_code, out = run_cli('--system', 'sol', '--repeat', '2')
        self.assertEqual(exit_code, 0)
        output = json.loads(out)
        self.assertTrue(output['layout']['metadata']['cache_hit'])
        self.assertAlmostEqual(output['statistics']['cache_statistics']['hit_rate'], 0.5)

    def test_input_file(self):
        records = {'objects': [
            {'id': 'sol', 'name': 'Sun', 'classification': 'star', 'properties': {'radius': 695700.0}},
            {'id': 'earth', 'name': 'Earth', 'classification': 'planet', 'properties': {'radius': 6371.0},
             'orbit': {'parent': 'sol', 'semi_major_axis': 1.0}},
        ]}
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'system.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(records, f)
            exit_code, out = run_cli('--input', path, '--mode', 'scientific')
        self.assertEqual(exit_code, 0)
        self.assertEqual(set(json.loads(out)['layout']['results']), {'sol', 'earth'})

    def test_missing_input_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs(level='CRITICAL'):
                exit_code, _ = run_cli('--input', os.path.join(tmp, 'missing.json'))
        self.assertEqual(exit_code, 1)

    def test_malformed_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'bad.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump([{'name': 'no id'}], f)
            with self.assertLogs(level='CRITICAL'):
                exit_code, _ = run_cli('--input', path)
        self.assertEqual(exit_code, 1)

    def test_profile_writes_stats(self):
        cwd = os.getcwd()
        with tempfile.TemporaryDirectory() as tmp:
            os.chdir(tmp)
            try:
                exit_code, _ = run_cli('--system', 'sol', '--mode', 'profile', '--profile')
                self.assertTrue(os.path.exists(os.path.join(tmp, 'orrery_profile.prof')))
            finally:
                os.chdir(cwd)
        self.assertEqual(exit_code, 0)


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
