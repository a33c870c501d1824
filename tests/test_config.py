import pytest

from salesinsight.config import Config, InsightsConfig, load_config


def test_load_config_basic(config_obj):
    assert config_obj.data.input_path.name == "sample_sales.csv"
    assert config_obj.columns.date == "date"
    assert config_obj.columns.units == "units"

    # insight defaults
    assert config_obj.insights.min_rows == 3
    assert config_obj.insights.concentration_warn_pct == 60
    assert config_obj.filters.category == "All"


def test_missing_sections_use_defaults(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("insights:\n  min_rows: 5\n", encoding="utf-8")

    cfg = load_config(cfg_path)

    assert isinstance(cfg, Config)
    assert cfg.insights.min_rows == 5
    assert cfg.insights.max_findings == InsightsConfig().max_findings
    assert cfg.columns.product == "product"
    assert cfg.output.save_report is False


def test_empty_file_gives_defaults(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("", encoding="utf-8")

    cfg = load_config(cfg_path)
    assert cfg.insights == InsightsConfig()


def test_top_level_must_be_mapping(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="YAML mapping"):
        load_config(cfg_path)


def test_columns_section_requires_core_mappings(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("columns:\n  date: order_date\n", encoding="utf-8")

    with pytest.raises(KeyError, match="Missing required column mapping"):
        load_config(cfg_path)


def test_custom_column_mapping(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        """
columns:
  date: order_date
  product: item
  units: qty
  price: unit_price
  category: dept
""",
        encoding="utf-8",
    )

    cfg = load_config(cfg_path)
    assert cfg.columns.date == "order_date"
    assert cfg.columns.units == "qty"
    assert cfg.columns.category == "dept"
    assert cfg.columns.revenue is None
