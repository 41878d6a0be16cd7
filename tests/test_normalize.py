import pandas as pd
import pytest

from cafeclean.etl.config import COLUMNS
from cafeclean.etl.extract import records_to_frame
from cafeclean.etl.normalize import Normalizer


def _raw(**overrides):
    row = {
        "transaction_id": "TXN_1",
        "item": "Coffee",
        "quantity": "2",
        "price_per_unit": "2.0",
        "total_spent": "4.0",
        "payment_method": "Cash",
        "location": "In-store",
        "transaction_date": "2023-09-08",
    }
    row.update(overrides)
    return records_to_frame([row])


class TestAnomalies:
    @pytest.mark.parametrize("value", ["", "UNKNOWN", "Unknown", "unknown", "ERROR", "Error", "error", "  ERROR "])
    @pytest.mark.parametrize("col", ["item", "payment_method", "location"])
    def test_categorical_anomaly_becomes_unknown(self, config, col, value):
        out = Normalizer(config).normalize(_raw(**{col: value}))
        assert out.loc[0, col] == "unknown"

    @pytest.mark.parametrize("value", ["", "UNKNOWN", "ERROR", "error"])
    @pytest.mark.parametrize("col", ["quantity", "price_per_unit", "total_spent"])
    def test_numeric_anomaly_becomes_null(self, config, col, value):
        out = Normalizer(config).normalize(_raw(**{col: value}))
        assert pd.isna(out.loc[0, col])

    @pytest.mark.parametrize("value", ["", "UNKNOWN", "ERROR"])
    def test_date_anomaly_becomes_null(self, config, value):
        out = Normalizer(config).normalize(_raw(transaction_date=value))
        assert pd.isna(out.loc[0, "transaction_date"])

    def test_real_nulls_are_anomalies(self, config):
        out = Normalizer(config).normalize(_raw(item=None, quantity=None, transaction_date=None))
        assert out.loc[0, "item"] == "unknown"
        assert pd.isna(out.loc[0, "quantity"])
        assert pd.isna(out.loc[0, "transaction_date"])

    def test_other_placeholders_are_not_anomalies(self, config):
        out = Normalizer(config).normalize(_raw(item="N/A", payment_method="none"))
        assert out.loc[0, "item"] == "n/a"
        assert out.loc[0, "payment_method"] == "none"


class TestParsing:
    def test_types(self, config):
        out = Normalizer(config).normalize(_raw())
        assert list(out.columns) == COLUMNS
        assert out["quantity"].dtype == "float64"
        assert out["price_per_unit"].dtype == "float64"
        assert out["total_spent"].dtype == "float64"
        assert pd.api.types.is_datetime64_any_dtype(out["transaction_date"])
        assert out.loc[0, "quantity"] == 2.0
        assert out.loc[0, "transaction_date"] == pd.Timestamp("2023-09-08")

    @pytest.mark.parametrize("value", ["two", "1,5", "3 cups", "--"])
    def test_unparsable_number_becomes_null(self, config, value):
        normalizer = Normalizer(config)
        out = normalizer.normalize(_raw(quantity=value))
        assert pd.isna(out.loc[0, "quantity"])
        assert normalizer.get_report()["unparsable"]["quantity"] == 1
        assert normalizer.get_report()["anomalies"]["quantity"] == 0

    @pytest.mark.parametrize("value", ["inf", "-inf", "Infinity", "nan", "-3", "-0.5"])
    @pytest.mark.parametrize("col", ["quantity", "price_per_unit", "total_spent"])
    def test_non_finite_or_negative_becomes_null(self, config, col, value):
        normalizer = Normalizer(config)
        out = normalizer.normalize(_raw(**{col: value}))
        assert pd.isna(out.loc[0, col])
        assert normalizer.get_report()["unparsable"][col] == 1

    def test_zero_is_kept(self, config):
        out = Normalizer(config).normalize(_raw(quantity="0"))
        assert out.loc[0, "quantity"] == 0.0

    @pytest.mark.parametrize("value", ["2023-13-01", "2023-02-30", "08/09/2023", "yesterday"])
    def test_unparsable_date_becomes_null(self, config, value):
        out = Normalizer(config).normalize(_raw(transaction_date=value))
        assert pd.isna(out.loc[0, "transaction_date"])

    def test_numeric_whitespace_is_stripped(self, config):
        out = Normalizer(config).normalize(_raw(total_spent=" 4.0 "))
        assert out.loc[0, "total_spent"] == 4.0


class TestStandardization:
    def test_lowercases_everything(self, config):
        out = Normalizer(config).normalize(_raw(transaction_id="TXN_ABC", item="SMOOTHIE"))
        assert out.loc[0, "transaction_id"] == "txn_abc"
        assert out.loc[0, "item"] == "smoothie"

    def test_payment_method_spaces_become_underscores(self, config):
        out = Normalizer(config).normalize(_raw(payment_method="Digital Wallet"))
        assert out.loc[0, "payment_method"] == "digital_wallet"

    def test_location_dashes_removed(self, config):
        out = Normalizer(config).normalize(_raw(location="In-store"))
        assert out.loc[0, "location"] == "instore"


class TestShapeAndIdempotence:
    def test_shape_is_preserved(self, config, raw_rows):
        raw = records_to_frame(raw_rows)
        out = Normalizer(config).normalize(raw)
        assert out.shape == raw.shape
        assert out["transaction_id"].tolist() == [r["transaction_id"].lower() for r in raw_rows]

    def test_input_is_not_mutated(self, config, raw_rows):
        raw = records_to_frame(raw_rows)
        snapshot = raw.copy()
        Normalizer(config).normalize(raw)
        pd.testing.assert_frame_equal(raw, snapshot)

    def test_second_pass_changes_nothing(self, config, raw_rows):
        normalizer = Normalizer(config)
        once = normalizer.normalize(records_to_frame(raw_rows))
        twice = normalizer.normalize(once)
        pd.testing.assert_frame_equal(once, twice)

    def test_second_pass_on_text_output_changes_nothing(self, config, raw_rows):
        normalizer = Normalizer(config)
        once = normalizer.normalize(records_to_frame(raw_rows))
        as_text = once.copy()
        as_text["transaction_date"] = as_text["transaction_date"].dt.strftime("%Y-%m-%d")
        for col in ("quantity", "price_per_unit", "total_spent"):
            as_text[col] = as_text[col].map(lambda v: "" if pd.isna(v) else repr(v))
        as_text = as_text.fillna("")
        twice = normalizer.normalize(as_text)
        pd.testing.assert_frame_equal(once, twice)

    def test_report_counts(self, config, raw_rows):
        normalizer = Normalizer(config)
        normalizer.normalize(records_to_frame(raw_rows))
        report = normalizer.get_report()
        assert report["rows"] == 5
        assert report["anomalies"]["item"] == 2
        assert report["anomalies"]["price_per_unit"] == 2
        assert report["anomalies"]["transaction_date"] == 1
        assert report["unparsable"]["transaction_date"] == 1
