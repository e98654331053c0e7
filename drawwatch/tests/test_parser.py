import datetime as dt
import unittest

from drawwatch.parser import RecordParser
from drawwatch.tests.pages import (
    BASE_URL,
    DETAIL_URL,
    detail_page,
    next_data_page,
    next_data_script,
    summary_page,
)
from drawwatch.types import NOT_AVAILABLE, PENDING


class ParseSummaryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = RecordParser(BASE_URL)

    def test_parses_latest_draw_and_detail_link(self) -> None:
        record, detail_url = self.parser.parse_summary(summary_page())

        self.assertIsNotNone(record)
        self.assertEqual(record.numbers, (9, 12, 22, 41, 61))
        self.assertEqual(record.special_number, 25)
        self.assertEqual(record.multiplier, 4)
        self.assertEqual(record.draw_date_raw, "Wed, Aug 27, 2025")
        self.assertEqual(record.draw_date_display, "Wed, Aug 27, 2025")
        self.assertEqual(record.draw_date, dt.date(2025, 8, 27))
        self.assertEqual(record.next_draw_date_raw, "Sat, Aug 30, 2025")
        self.assertEqual(record.next_draw_date, dt.date(2025, 8, 30))
        self.assertEqual(record.next_draw_jackpot, "$1.1 Billion")
        self.assertEqual(detail_url, DETAIL_URL)

    def test_financial_fields_start_pending(self) -> None:
        record, _ = self.parser.parse_summary(summary_page())

        self.assertEqual(record.jackpot_amount, PENDING)
        self.assertEqual(record.cash_value, PENDING)
        self.assertEqual(record.jackpot_winners, PENDING)
        self.assertFalse(record.is_complete)
        self.assertTrue(record.is_valid)

    def test_wrong_ball_count_fails(self) -> None:
        for numbers in [(9, 12, 22, 41), (9, 12, 22, 41, 61, 3)]:
            with self.subTest(numbers=numbers):
                page = summary_page(numbers=numbers)
                self.assertEqual(self.parser.parse_summary(page), (None, None))

    def test_wrong_ball_count_fails_even_with_embedded_data(self) -> None:
        script = next_data_script(
            {"drawDate": "2025-08-27", "numbers": ["9", "12", "22", "41", "61"], "powerball": "25"}
        )
        page = summary_page(numbers=(9, 12, 22, 41)).replace("</body>", script + "</body>")

        self.assertEqual(self.parser.parse_summary(page), (None, None))

    def test_non_numeric_and_out_of_range_balls_are_dropped(self) -> None:
        page = summary_page(numbers=(9, 12, "xx", 41, 61))
        self.assertEqual(self.parser.parse_summary(page), (None, None))

        page = summary_page(numbers=(9, 12, 22, 41, 70))
        self.assertEqual(self.parser.parse_summary(page), (None, None))

    def test_missing_special_ball_fails(self) -> None:
        self.assertEqual(self.parser.parse_summary(summary_page(special=None)), (None, None))
        self.assertEqual(self.parser.parse_summary(summary_page(special="27")), (None, None))

    def test_missing_draw_date_fails(self) -> None:
        self.assertEqual(self.parser.parse_summary(summary_page(date_text=None)), (None, None))

    def test_missing_numbers_region_fails(self) -> None:
        page = "<html><body><div id='next-drawing'></div></body></html>"

        self.assertEqual(self.parser.parse_summary(page), (None, None))

    def test_multiplier_defaults_to_one(self) -> None:
        for multiplier in (None, "Power Play"):
            with self.subTest(multiplier=multiplier):
                record, _ = self.parser.parse_summary(summary_page(multiplier=multiplier))
                self.assertEqual(record.multiplier, 1)

    def test_missing_link_yields_no_detail_url(self) -> None:
        record, detail_url = self.parser.parse_summary(summary_page(link=None))

        self.assertIsNotNone(record)
        self.assertIsNone(detail_url)

    def test_absolute_link_passes_through(self) -> None:
        link = "https://example.test/draw-result?date=2025-08-27"
        _, detail_url = self.parser.parse_summary(summary_page(link=link))

        self.assertEqual(detail_url, link)

    def test_results_link_found_by_its_label(self) -> None:
        _, detail_url = self.parser.parse_summary(summary_page(link="/results/powerball/2025-08-27"))

        self.assertEqual(detail_url, "https://www.powerball.com/results/powerball/2025-08-27")

    def test_missing_next_drawing_is_not_available(self) -> None:
        record, _ = self.parser.parse_summary(summary_page(next_date=None))

        self.assertEqual(record.next_draw_date_raw, NOT_AVAILABLE)
        self.assertEqual(record.next_draw_jackpot, NOT_AVAILABLE)
        self.assertIsNone(record.next_draw_date)

    def test_embedded_page_data_used_when_region_absent(self) -> None:
        page = next_data_page(
            {
                "drawDate": "2025-08-27",
                "numbers": ["09", "12", "22", "41", "61"],
                "powerball": "25",
                "multiplier": "4",
                "prizeAmount": "$20 Million",
                "nextDrawDate": "2025-08-30",
                "nextDrawJackpot": "$1.1 Billion",
            }
        )

        record, detail_url = self.parser.parse_summary(page)

        self.assertIsNone(detail_url)
        self.assertEqual(record.numbers, (9, 12, 22, 41, 61))
        self.assertEqual(record.special_number, 25)
        self.assertEqual(record.multiplier, 4)
        self.assertEqual(record.draw_date_display, "Wed, Aug 27, 2025")
        self.assertEqual(record.jackpot_amount, "$20 Million")
        self.assertEqual(record.cash_value, PENDING)
        self.assertEqual(record.next_draw_date, dt.date(2025, 8, 30))

    def test_broken_embedded_page_data_fails(self) -> None:
        page = '<html><body><script id="__NEXT_DATA__">{not json</script></body></html>'

        self.assertEqual(self.parser.parse_summary(page), (None, None))


class ParseDetailTests(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = RecordParser(BASE_URL)

    def test_parses_financial_figures(self) -> None:
        self.assertEqual(
            self.parser.parse_detail(detail_page()),
            ("$20 Million", "$9.2 Million", "None"),
        )

    def test_first_winners_group_wins(self) -> None:
        _, _, winners = self.parser.parse_detail(detail_page(winners="TX, FL"))

        self.assertEqual(winners, "TX, FL")

    def test_missing_fields_fall_back_to_defaults(self) -> None:
        self.assertEqual(
            self.parser.parse_detail(detail_page(jackpot=None, cash=None, winners=None)),
            (PENDING, PENDING, NOT_AVAILABLE),
        )

    def test_partial_detail_page(self) -> None:
        self.assertEqual(
            self.parser.parse_detail(detail_page(cash=None)),
            ("$20 Million", PENDING, "None"),
        )

    def test_embedded_page_data_fills_gaps(self) -> None:
        script = next_data_script({"cashValue": "$9.2 Million"})
        page = detail_page(cash=None).replace("</body>", script + "</body>")

        self.assertEqual(
            self.parser.parse_detail(page),
            ("$20 Million", "$9.2 Million", "None"),
        )


if __name__ == "__main__":
    unittest.main()
