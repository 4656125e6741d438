import io

import pytest

import rpn.ast as ast
from rpn.builder import MalformedExpression
from rpn.evaluator import Evaluator
from rpn.interpreter import Interpreter, InvalidBinding, main


def scripted_prompt(*commands):
    """Prompt replacement feeding the given commands, then EOF."""
    pending = list(commands)
    prompts = []

    def prompt(message):
        prompts.append(message)
        if not pending:
            raise EOFError()
        return pending.pop(0)

    prompt.prompts = prompts
    return prompt


def run_repl(*commands, interpreter=None, context=None):
    interpreter = interpreter or Interpreter()
    output, err_output = io.StringIO(), io.StringIO()
    interpreter.repl(context=context, output=output, err_output=err_output, prompt=scripted_prompt(*commands))
    return output.getvalue(), err_output.getvalue()


def test_parse_integer_binding():
    name, value = Interpreter().parse_binding("w=5")
    assert name == "w"
    assert value == ast.Constant(5)


def test_parse_negative_integer_binding():
    assert Interpreter().parse_binding("z=-42")[1] == ast.Constant(-42)


def test_parse_expression_binding():
    name, value = Interpreter().parse_binding("a=b c -")
    assert name == "a"
    assert value == ast.subtract(ast.VariableRef("b"), ast.VariableRef("c"))


@pytest.mark.parametrize("text", ["w", "=5", "w=", "w x=5", "w=  "])
def test_invalid_binding(text):
    with pytest.raises(InvalidBinding):
        Interpreter().parse_binding(text)


def test_evaluate():
    context = {"w": ast.Constant(5), "x": ast.Constant(10), "z": ast.Constant(42)}
    assert Interpreter().evaluate("w x z - +", context) == -27


def test_execute_assignment_updates_context():
    context = {}
    assert Interpreter().execute("a = 10", context) is None
    assert context == {"a": ast.Constant(10)}


def test_execute_expression():
    assert Interpreter().execute("a b -", {"a": ast.Constant(10), "b": ast.Constant(3)}) == 7


def test_repl_session():
    output, err_output = run_repl("w = 5", "x = 10", "z = 42", "", "w x z - +")
    assert output == "-27\n"
    assert err_output == ""


def test_repl_prompt_text():
    prompt = scripted_prompt("a")
    Interpreter().repl(output=io.StringIO(), err_output=io.StringIO(), prompt=prompt)
    assert prompt.prompts == ["rpn> ", "rpn> "]


def test_repl_binding_to_expression():
    output, _ = run_repl("b = 2", "a = b b +", "a a +")
    assert output == "8\n"


def test_repl_does_not_modify_initial_context():
    context = {"a": ast.Constant(1)}
    output, _ = run_repl("a = 2", "a", context=context)
    assert output == "2\n"
    assert context == {"a": ast.Constant(1)}


def test_repl_reports_malformed_expression_and_continues():
    output, err_output = run_repl("a b + +", "a b +")
    assert output == "0\n"
    assert err_output.splitlines() == [
        "In '<command:0>', line 0",
        "  a b + +",
        "        ^",
        "Malformed Expression: Operator '+' requires two operands",
    ]


def test_repl_reports_strict_errors():
    interpreter = Interpreter(evaluator=Evaluator(strict=True))
    output, err_output = run_repl("q", interpreter=interpreter)
    assert output == ""
    assert err_output == "UnboundVariable: Variable is not bound: q\n"


def test_repl_reports_cyclic_binding():
    output, err_output = run_repl("a = a 1 +", "a")
    assert output == ""
    assert err_output.startswith("CyclicBinding:")


def test_repl_stops_on_keyboard_interrupt():
    def prompt(message):
        raise KeyboardInterrupt()

    output = io.StringIO()
    Interpreter().repl(output=output, err_output=io.StringIO(), prompt=prompt)
    assert output.getvalue() == ""


def test_exec_expression():
    output = io.StringIO()
    Interpreter().exec_expression("w x z - +", ["w=5", "x=10", "z=42"], output=output)
    assert output.getvalue() == "-27\n"


def test_exec_expression_malformed_exits():
    err_output = io.StringIO()
    with pytest.raises(SystemExit) as exit_info:
        Interpreter().exec_expression("a b", output=io.StringIO(), err_output=err_output)
    assert exit_info.value.code == -1
    assert "Malformed Expression: Missing operator for 2 operands" in err_output.getvalue()


def test_exec_expression_malformed_binding_points_at_binding():
    err_output = io.StringIO()
    with pytest.raises(SystemExit):
        Interpreter().exec_expression("a", ["a=b +"], output=io.StringIO(), err_output=err_output)
    assert err_output.getvalue().splitlines()[:3] == [
        "In '<binding:a>', line 0",
        "  b +",
        "    ^",
    ]


def test_exec_expression_invalid_binding_exits():
    err_output = io.StringIO()
    with pytest.raises(SystemExit):
        Interpreter().exec_expression("a", ["a"], output=io.StringIO(), err_output=err_output)
    assert err_output.getvalue().startswith("InvalidBinding:")


def test_main_one_shot(capsys):
    main(["w x z - +", "w=5", "x=10", "z=42"])
    assert capsys.readouterr().out == "-27\n"


def test_main_unbound_variable_defaults_to_zero(capsys):
    main(["a q +", "a=3"])
    assert capsys.readouterr().out == "3\n"


def test_main_strict(capsys):
    with pytest.raises(SystemExit):
        main(["--strict", "a q +", "a=3"])
    assert "UnboundVariable" in capsys.readouterr().err


def test_execute_second_token_equals_is_always_assignment():
    context = {}
    with pytest.raises(MalformedExpression):
        Interpreter().execute("a = b - -", context)
    assert context == {}


def test_exec_expression_with_equals_name_is_evaluated():
    output = io.StringIO()
    Interpreter().exec_expression("a = b - -", ["a=1", "b=5"], output=output)
    assert output.getvalue() == "6\n"
