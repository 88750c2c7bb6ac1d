from kasukibot.core.configurations import Config


def test_load_yaml_with_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    path.write_text(
        "bot:\n"
        "  discord_token: from-file\n"
        "  owners: [1, '2']\n"
        "  config:\n"
        "    db_type: sqlite\n"
        "logging:\n"
        "  log_level: info\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("DB_TYPE", "postgresql")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    monkeypatch.delenv("POSTGRES_DSN", raising=False)
    monkeypatch.chdir(tmp_path)

    cfg = Config.load(str(path))

    assert cfg.token == "from-file"
    assert cfg.get("bot", "config", "db_type") == "postgresql"
    assert cfg.log_level == "DEBUG"
    assert cfg.owners == {1, 2}


def test_missing_file_gives_empty_config(tmp_path):
    cfg = Config.load(str(tmp_path / "missing.yml"), use_env=False)
    assert cfg == {}
    assert cfg.token == ""
    assert cfg.log_level == "INFO"


def test_nested_get_and_set():
    cfg = Config({})
    cfg.set("ai", "question", "model", "small")
    assert cfg.ai("question", "model") == "small"
    assert cfg.get("ai", "image", "model", default="none") == "none"


def test_apply_env_ignores_empty_values():
    cfg = Config({"bot": {"discord_token": "keep"}})
    cfg.apply_env({"DISCORD_TOKEN": "", "POSTGRES_DSN": "postgresql://db"})
    assert cfg.token == "keep"
    assert cfg.get("bot", "config", "postgres_dsn") == "postgresql://db"
