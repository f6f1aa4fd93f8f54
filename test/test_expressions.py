import math
import unittest

from meandergen.expressions import (
    ExpressionError,
    MalformedExpression,
    ParameterSet,
    UnknownParameter,
    evaluate,
)


PARAMS = ParameterSet({
    'x_patch1': 0.0,
    'l_patch': 10.0,
    'w_meander': 1.0,
    'w_meander_gap': 0.5,
})


class TestEvaluate(unittest.TestCase):
    def test_precedence(self):
        self.assertEqual(evaluate("1 + 2*3", PARAMS), 7.0)
        self.assertEqual(evaluate("(1 + 2)*3", PARAMS), 9.0)
        self.assertEqual(evaluate("l_patch/2 - w_meander", PARAMS), 4.0)

    def test_unary_minus_and_sqrt(self):
        self.assertAlmostEqual(evaluate("-w_meander/sqrt(2)", PARAMS), -1 / math.sqrt(2))
        self.assertEqual(evaluate("+sqrt(16)", PARAMS), 4.0)

    def test_placement_formula(self):
        value = evaluate(
            "x_patch1 - l_patch/2 + w_meander*2*2 + w_meander_gap*(2*2-1)", PARAMS
        )
        self.assertAlmostEqual(value, -5 + 4 + 1.5)

    def test_numbers_pass_through(self):
        self.assertEqual(evaluate(3, PARAMS), 3.0)
        self.assertEqual(evaluate(2.5, {}), 2.5)

    def test_unknown_parameter(self):
        with self.assertRaises(UnknownParameter) as ctx:
            evaluate("l_patch + y_patch1", PARAMS)
        self.assertEqual(ctx.exception.name, 'y_patch1')
        self.assertEqual(ctx.exception.expression, "l_patch + y_patch1")
        self.assertIn("y_patch1", str(ctx.exception))

    def test_malformed(self):
        for text in ["", "   ", "l_patch +", "l_patch ** 2", "2 % 3",
                     "cos(1)", "sqrt(1, 2)", "'a'", "l_patch.real",
                     "__import__('os')", "True"]:
            with self.subTest(text=text):
                with self.assertRaises(MalformedExpression):
                    evaluate(text, PARAMS)

    def test_math_domain_errors_are_malformed(self):
        with self.assertRaises(MalformedExpression):
            evaluate("1/(w_meander - 1)", PARAMS)
        with self.assertRaises(MalformedExpression):
            evaluate("sqrt(-l_patch)", PARAMS)

    def test_errors_share_base(self):
        self.assertTrue(issubclass(UnknownParameter, ExpressionError))
        self.assertTrue(issubclass(MalformedExpression, ValueError))

    def test_with_index(self):
        err = UnknownParameter('ts', "ts + tp").with_index(4)
        self.assertEqual(err.index, 4)
        self.assertTrue(str(err).startswith("segment 4:"))


class TestParameterSet(unittest.TestCase):
    def test_mapping_behaviour(self):
        params = ParameterSet({'a': 1}, b=2)
        self.assertEqual(len(params), 2)
        self.assertEqual(params['a'], 1.0)
        self.assertIsInstance(params['b'], float)
        self.assertEqual(sorted(params), ['a', 'b'])
        self.assertEqual(params.to_dict(), {'a': 1.0, 'b': 2.0})

    def test_read_only(self):
        params = ParameterSet({'a': 1})
        with self.assertRaises(TypeError):
            params['a'] = 2.0
        source = {'a': 1.0}
        params = ParameterSet(source)
        source['a'] = 5.0
        self.assertEqual(params['a'], 1.0)


if __name__ == '__main__':
    unittest.main()
