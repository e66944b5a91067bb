"""
Tests for the value slots and the converter registry.

This module verifies:
- Counter bookkeeping (assign_count, option_assign_count, has_errors).
- Scalar slots overwrite, list slots append, reset restores defaults.
- Object and mapping destinations.
- Built-in and registered converters, and conversion failures.
- Custom slots built on Value.
"""
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest import TestCase

from argbind import (
    ConversionError,
    ConvertedValue,
    ListValue,
    Value,
    VoidValue,
    append,
    converter,
    register_converter,
    store,
)


class ReversedValue(Value):
    """Custom slot storing the raw string and its reverse."""

    def __init__(self, target):
        super().__init__()
        self.target = target

    def _assign(self, value, /):
        self.target.value = value
        self.target.reversed = value[::-1]

    def _reset(self):
        self.target.value = self.target.reversed = ""


class CounterTest(TestCase):
    """
    The counters follow the assignment protocol used by the scanner.
    """

    def setUp(self) -> None:
        self.target = SimpleNamespace()
        self.slot = store(self.target, "value")

    def testFreshSlotIsClean(self) -> None:
        self.assertEqual(self.slot.assign_count, 0)
        self.assertEqual(self.slot.option_assign_count, 0)
        self.assertFalse(self.slot.has_errors)

    def testSetValueIncrementsBothCounters(self) -> None:
        self.slot.set_value("a")
        self.slot.set_value("b")
        self.assertEqual(self.slot.assign_count, 2)
        self.assertEqual(self.slot.option_assign_count, 2)

    def testOptionStartedResetsOnlyTheActivationCounter(self) -> None:
        self.slot.set_value("a")
        self.slot.on_option_started()
        self.assertEqual(self.slot.assign_count, 1)
        self.assertEqual(self.slot.option_assign_count, 0)

    def testMarkBadArgumentCountsActivationOnly(self) -> None:
        self.slot.mark_bad_argument()
        self.assertEqual(self.slot.assign_count, 0)
        self.assertEqual(self.slot.option_assign_count, 1)
        self.assertTrue(self.slot.has_errors)

    def testResetZeroesCountersAndRestoresDefault(self) -> None:
        slot = store(self.target, "depth", int, 7)
        slot.set_value("3")
        slot.mark_bad_argument()
        slot.reset()
        self.assertEqual(self.target.depth, 7)
        self.assertEqual(slot.assign_count, 0)
        self.assertEqual(slot.option_assign_count, 0)
        self.assertFalse(slot.has_errors)


class DestinationTest(TestCase):
    """
    Scalar and list slots write into caller-owned destinations.
    """

    def testScalarSlotOverwrites(self) -> None:
        target = SimpleNamespace()
        slot = store(target, "name")
        slot.set_value("first")
        slot.set_value("second")
        self.assertEqual(target.name, "second")

    def testListSlotAppends(self) -> None:
        target = SimpleNamespace()
        slot = append(target, "numbers", int)
        slot.set_value("576")
        slot.set_value("981")
        self.assertEqual(target.numbers, [576, 981])

    def testListResetKeepsTheSameList(self) -> None:
        target = SimpleNamespace(items=["stale"])
        slot = append(target, "items")
        held = target.items
        slot.reset()
        self.assertIs(target.items, held)
        self.assertEqual(held, [])

    def testListSlotCreatesMissingList(self) -> None:
        target = SimpleNamespace()
        append(target, "items").set_value("x")
        self.assertEqual(target.items, ["x"])

    def testMappingTarget(self) -> None:
        target = {}
        store(target, "depth", int).set_value("12")
        append(target, "files").set_value("a.txt")
        self.assertEqual(target, {"depth": 12, "files": ["a.txt"]})

    def testFactoriesBuildTheClosedVariants(self) -> None:
        self.assertIsInstance(store({}, "x"), ConvertedValue)
        self.assertIsInstance(append({}, "x"), ListValue)
        self.assertIsInstance(append({}, "x"), ConvertedValue)

    def testAttributeMustBeAString(self) -> None:
        with self.assertRaises(TypeError):
            store({}, 3)

    def testVoidValueDiscards(self) -> None:
        slot = VoidValue()
        slot.set_value("anything")
        self.assertEqual(slot.assign_count, 1)
        slot.reset()
        self.assertEqual(slot.assign_count, 0)

    def testCustomSlot(self) -> None:
        target = SimpleNamespace()
        slot = ReversedValue(target)
        slot.set_value("value")
        self.assertEqual(target.value, "value")
        self.assertEqual(target.reversed, "eulav")
        slot.reset()
        self.assertEqual(target.reversed, "")

    def testValueIsAbstract(self) -> None:
        with self.assertRaises(TypeError):
            Value()


class ConverterTest(TestCase):
    """
    String converters for declared types.
    """

    def testBuiltinConversions(self) -> None:
        target = {}
        store(target, "i", int).set_value("2314")
        store(target, "f", float).set_value("23.5")
        store(target, "c", complex).set_value("1+2j")
        self.assertEqual(target["i"], 2314)
        self.assertAlmostEqual(target["f"], 23.5)
        self.assertEqual(target["c"], complex(1, 2))

    def testBooleanSpellings(self) -> None:
        convert = converter(bool)
        for spelling in ("1", "true", "YES", "On"):
            self.assertIs(convert(spelling), True)
        for spelling in ("0", "false", "no", "OFF"):
            self.assertIs(convert(spelling), False)
        with self.assertRaises(ValueError):
            convert("maybe")

    def testCallableTypeIsUsedDirectly(self) -> None:
        target = {}
        store(target, "amount", Decimal).set_value("1.25")
        self.assertEqual(target["amount"], Decimal("1.25"))

    def testRegisteredConverter(self) -> None:
        class Celsius(float):
            pass

        register_converter(Celsius, lambda raw: Celsius(raw.removesuffix("C")))
        target = {}
        store(target, "temperature", Celsius).set_value("21.5C")
        self.assertEqual(target["temperature"], 21.5)
        self.assertIsInstance(target["temperature"], Celsius)

    def testRegisterRejectsNonCallable(self) -> None:
        with self.assertRaises(TypeError):
            register_converter(int, "int")

    def testNonCallableTypeRejected(self) -> None:
        with self.assertRaises(TypeError):
            converter(42)

    def testConversionFailure(self) -> None:
        target = {}
        slot = store(target, "depth", int, 5)
        slot.reset()
        with self.assertRaises(ConversionError) as context:
            slot.set_value("wrong")
        self.assertEqual(context.exception.value, "wrong")
        self.assertIs(context.exception.type, int)
        self.assertTrue(slot.has_errors)
        self.assertEqual(slot.option_assign_count, 1)
        self.assertEqual(target["depth"], 5)

    def testRejectedValueDoesNotTouchTheList(self) -> None:
        target = {}
        with self.assertRaises(ConversionError):
            append(target, "numbers", int).set_value("x")
        self.assertNotIn("numbers", target)


if __name__ == "__main__":
    unittest.main()
