import unittest

from webusb_analyzer.diagnostics import DiagnosticsBuilder, Severity, Verdict, compute_verdict


class TestVerdict(unittest.TestCase):
    def test_verdicts(self):
        self.assertEqual(compute_verdict(0, 0), Verdict.WELL_FORMED)
        self.assertEqual(compute_verdict(0, 3), Verdict.VALID_WITH_WARNINGS)
        self.assertEqual(compute_verdict(1, 0), Verdict.INVALID)
        self.assertEqual(compute_verdict(2, 5), Verdict.INVALID)


class TestDiagnosticsBuilder(unittest.TestCase):
    def test_counts_and_order(self):
        diag = DiagnosticsBuilder()
        diag.warning("first", 2)
        diag.error("second", 4)
        diag.warning("third")
        result = diag.build()

        self.assertEqual(result.error_count, 1)
        self.assertEqual(result.warning_count, 2)
        self.assertEqual(result.verdict, Verdict.INVALID)
        self.assertEqual(result.messages(), ["first", "second", "third"])
        self.assertEqual([d.offset for d in result.diagnostics], [2, 4, None])
        self.assertFalse(result.halted)

    def test_fatal_marks_halted(self):
        diag = DiagnosticsBuilder()
        diag.fatal("stop", 7)
        result = diag.build({"anything": 1})

        self.assertTrue(result.halted)
        self.assertTrue(result.diagnostics[0].fatal)
        self.assertEqual(result.diagnostics[0].severity, Severity.ERROR)
        self.assertEqual(result.parsed, {"anything": 1})

    def test_builders_do_not_share_state(self):
        first = DiagnosticsBuilder()
        first.error("boom")
        self.assertEqual(DiagnosticsBuilder().build().diagnostics, ())

    def test_result_is_frozen(self):
        result = DiagnosticsBuilder().build()
        with self.assertRaises(Exception):
            result.error_count = 3


if __name__ == "__main__":
    unittest.main()
