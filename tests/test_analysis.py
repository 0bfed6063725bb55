from __future__ import annotations

import unittest

from codeon.analysis import (
    FALLBACK_PROMPT,
    Diagnostic,
    DiagnosticSource,
    Severity,
    count_input_calls,
    has_blocking_errors,
    lint_source,
    mask_source,
    merge_diagnostics,
    needs_input,
    parse_compiler_output,
    scan_prompt,
    to_markers,
)


PROGRAM = """using System;

class Program
{
    static void Main(string[] args)
    {
        Console.Write("Enter radius: ");
        double r = Convert.ToDouble(Console.ReadLine());
        Console.WriteLine(r * 2);
    }
}"""


class MaskingTest(unittest.TestCase):
    def test_keeps_columns_and_blanks_literals(self) -> None:
        masked = mask_source('var s = "a(b"; // call Console.ReadLine()')
        self.assertEqual(len(masked), len('var s = "a(b"; // call Console.ReadLine()'))
        self.assertNotIn("(", masked)
        self.assertTrue(masked.startswith('var s = "   ";'))

    def test_block_comment_spans_lines(self) -> None:
        source = "/* Console.ReadLine();\nstill comment */ int x = 1;"
        self.assertFalse(needs_input(source))
        self.assertIn("int x = 1;", mask_source(source))

    def test_counts_reads_outside_comments(self) -> None:
        source = "\n".join([
            "var a = Console.ReadLine();",
            "// var b = Console.ReadLine();",
            'Console.WriteLine("Console.ReadLine()");',
            "var c = Console.ReadLine();",
        ])
        self.assertEqual(count_input_calls(source), 2)


class LinterTest(unittest.TestCase):
    def test_clean_program_has_no_diagnostics(self) -> None:
        self.assertEqual(lint_source(PROGRAM), [])

    def test_empty_source(self) -> None:
        self.assertEqual(lint_source(""), [])

    def test_unclosed_brace_reports_one_error_at_the_brace(self) -> None:
        source = "class Program\n{\n    static void Main()\n    {\n        int x = 1;\n    }\n"
        errors = [d for d in lint_source(source) if d.is_error]
        self.assertEqual(len(errors), 1)
        self.assertEqual((errors[0].line, errors[0].column), (2, 1))
        self.assertEqual(errors[0].message, "Unclosed bracket '{'")

    def test_only_the_innermost_unclosed_bracket_is_reported(self) -> None:
        errors = [d for d in lint_source("void F() {\n    if (x > 0) {") if d.is_error]
        self.assertEqual(len(errors), 1)
        self.assertEqual((errors[0].line, errors[0].column), (2, 16))

    def test_unexpected_closing_bracket(self) -> None:
        diagnostics = lint_source("int x = (1 + 2));")
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].message, "Unexpected closing bracket ')'")
        self.assertEqual(diagnostics[0].column, 16)
        self.assertEqual(diagnostics[0].severity, Severity.ERROR)

    def test_brackets_inside_strings_and_comments_are_ignored(self) -> None:
        source = 'Console.WriteLine("(((");\n// }}}\nchar c = \'{\';\n/* [ */'
        self.assertEqual([d for d in lint_source(source) if d.is_error], [])

    def test_missing_semicolon_is_a_warning_after_the_line(self) -> None:
        source = "int x = 1\nint y = 2;"
        diagnostics = lint_source(source)
        self.assertEqual(len(diagnostics), 1)
        warning = diagnostics[0]
        self.assertEqual(warning.severity, Severity.WARNING)
        self.assertEqual((warning.line, warning.column), (1, 10))
        self.assertEqual(warning.message, "Syntax Hint: Missing semicolon?")
        self.assertFalse(has_blocking_errors(diagnostics))

    def test_trailing_comment_does_not_hide_missing_semicolon(self) -> None:
        diagnostics = lint_source("int x = 1 // one")
        self.assertEqual(len(diagnostics), 1)

    def test_control_flow_and_using_lines_need_no_semicolon(self) -> None:
        source = "using System\nif (x > 1)\nelse\nwhile (true)\n#region main"
        self.assertEqual(lint_source(source), [])


class PromptScannerTest(unittest.TestCase):
    def test_literal_before_read(self) -> None:
        prompt = scan_prompt(PROGRAM)
        self.assertTrue(prompt.explicit)
        self.assertEqual(prompt.text, "Enter radius: ")

    def test_same_line_write(self) -> None:
        prompt = scan_prompt('Console.Write("Age? "); var a = Console.ReadLine();')
        self.assertEqual(prompt.text, "Age? ")
        self.assertTrue(prompt.explicit)

    def test_writeline_prompt_keeps_newline(self) -> None:
        source = 'Console.WriteLine("Enter a number:");\nvar n = Console.ReadLine();'
        self.assertEqual(scan_prompt(source).text, "Enter a number:\n")

    def test_skips_blank_and_comment_lines(self) -> None:
        source = 'Console.Write("Name: ");\n\n// read it\nvar n = Console.ReadLine();'
        self.assertEqual(scan_prompt(source).text, "Name: ")

    def test_stops_at_previous_statement(self) -> None:
        source = 'Console.Write("Name: ");\nint x = 1;\nvar n = Console.ReadLine();'
        prompt = scan_prompt(source)
        self.assertFalse(prompt.explicit)
        self.assertEqual(prompt.text, FALLBACK_PROMPT)

    def test_escapes_are_decoded(self) -> None:
        source = 'Console.Write("Value\\t: ");\nvar v = Console.ReadLine();'
        self.assertEqual(scan_prompt(source).text, "Value\t: ")

    def test_no_read_call_uses_fallback(self) -> None:
        prompt = scan_prompt('Console.WriteLine("hi");')
        self.assertEqual(prompt.text, FALLBACK_PROMPT)
        self.assertFalse(prompt.explicit)


class CompilerOutputTest(unittest.TestCase):
    STDERR = (
        "Program.cs(7,44): error CS1002: ; expected [/tmp/app.csproj]\n"
        "Program.cs(7,44): error CS1002: ; expected [/tmp/app.csproj]\n"
        "Program.cs(9,5): error CS0103: The name 'x' does not exist in the current context\n"
        "Program.cs(3,1): warning CS0168: unused\n"
        "Compilation failed: 2 error(s), 1 warnings\n"
    )

    def test_parses_distinct_errors(self) -> None:
        diagnostics = parse_compiler_output(self.STDERR)
        self.assertEqual(len(diagnostics), 2)
        first = diagnostics[0]
        self.assertEqual((first.line, first.column), (7, 44))
        self.assertEqual(first.message, "CS1002: ; expected")
        self.assertEqual(first.source, DiagnosticSource.COMPILER)
        self.assertTrue(all(d.is_error for d in diagnostics))

    def test_runtime_stderr_yields_nothing(self) -> None:
        stderr = "Unhandled Exception:\nSystem.FormatException: Input string was not in a correct format."
        self.assertEqual(parse_compiler_output(stderr), [])
        self.assertEqual(parse_compiler_output(""), [])

    def test_merge_orders_by_position_and_keeps_severity(self) -> None:
        lint = lint_source("int x = 1\nint y = 2;")
        compiler = parse_compiler_output("Program.cs(1,3): error CS0001: boom")
        merged = merge_diagnostics(lint, compiler)
        self.assertEqual([d.source for d in merged], [DiagnosticSource.COMPILER, DiagnosticSource.LINTER])
        self.assertEqual(merged[1].severity, Severity.WARNING)

    def test_markers(self) -> None:
        diagnostic = Diagnostic(
            line=2, column=5, message="m", source=DiagnosticSource.LINTER,
            severity=Severity.ERROR,
        )
        marker = to_markers([diagnostic])[0]
        self.assertEqual((marker.start_line, marker.start_column), (2, 5))
        self.assertEqual((marker.end_line, marker.end_column), (2, 6))
        self.assertEqual(marker.severity, Severity.ERROR)


if __name__ == "__main__":
    unittest.main()
