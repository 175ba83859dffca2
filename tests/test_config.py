import pytest

from gae_deploy_kit.config import AppCfgOptions, GCloudAppOptions, load_env_files


def test_from_env_defaults(clean_appengine_env: pytest.MonkeyPatch) -> None:
    options = AppCfgOptions.from_env()

    assert options.server is None
    assert options.oauth2 is True
    assert options.passin is False
    assert options.app_dir == "target/app"
    assert options.appcfg_mode == "inprocess"
    assert options.decryptor == "none"
    assert options.credentials_file == ".env.servers"


def test_from_env_reads_values(clean_appengine_env: pytest.MonkeyPatch) -> None:
    monkeypatch = clean_appengine_env
    monkeypatch.setenv("APPENGINE_SERVER", "appengine.google.com")
    monkeypatch.setenv("APPENGINE_SERVER_ID", "prod")
    monkeypatch.setenv("APPENGINE_NO_COOKIES", "yes")
    monkeypatch.setenv("APPENGINE_OAUTH2", "false")
    monkeypatch.setenv("APPENGINE_NUM_DAYS", "3")
    monkeypatch.setenv("APPENGINE_APPCFG_MODE", "Subprocess")
    monkeypatch.setenv("GAE_DECRYPTOR", "fernet")

    options = AppCfgOptions.from_env()

    assert options.server == "appengine.google.com"
    assert options.server_id == "prod"
    assert options.no_cookies is True
    assert options.oauth2 is False
    assert options.num_days == 3
    assert options.appcfg_mode == "subprocess"
    assert options.decryptor == "fernet"


def test_invalid_int_names_variable(clean_appengine_env: pytest.MonkeyPatch) -> None:
    clean_appengine_env.setenv("APPENGINE_NUM_RUNS", "many")

    with pytest.raises(ValueError) as excinfo:
        AppCfgOptions.from_env()

    assert "APPENGINE_NUM_RUNS" in str(excinfo.value)


def test_invalid_appcfg_mode_raises(clean_appengine_env: pytest.MonkeyPatch) -> None:
    clean_appengine_env.setenv("APPENGINE_APPCFG_MODE", "docker")

    with pytest.raises(ValueError) as excinfo:
        AppCfgOptions.from_env()

    assert "APPENGINE_APPCFG_MODE" in str(excinfo.value)


def test_gcloud_options_from_env(clean_appengine_env: pytest.MonkeyPatch) -> None:
    monkeypatch = clean_appengine_env
    monkeypatch.setenv("GCLOUD_PATH", "/opt/sdk/bin/gcloud")
    monkeypatch.setenv("GCLOUD_APP_VERSION", "v2")
    monkeypatch.setenv("APPENGINE_SERVER", "example.com")
    monkeypatch.setenv("GCLOUD_TIMEOUT_SECONDS", "30")

    options = GCloudAppOptions.from_env()

    assert options.gcloud_path == "/opt/sdk/bin/gcloud"
    assert options.gcloud_app_version == "v2"
    assert options.gcloud_app_server is None
    assert options.server == "example.com"
    assert options.timeout == 30.0


def test_load_env_files_later_file_overrides(clean_appengine_env: pytest.MonkeyPatch, tmp_path) -> None:
    # load_dotenv 는 os.environ 을 직접 바꾸므로, 테스트 종료 시 되돌리도록 monkeypatch 에 등록해 둔다.
    for key in ("APPENGINE_APP_ID", "APPENGINE_VERSION"):
        clean_appengine_env.setenv(key, "placeholder")
        clean_appengine_env.delenv(key)

    (tmp_path / ".env").write_text("APPENGINE_APP_ID=first\nAPPENGINE_VERSION=1\n", encoding="utf-8")
    (tmp_path / ".env.appengine").write_text("APPENGINE_APP_ID=second\n", encoding="utf-8")

    load_env_files(str(tmp_path))
    options = AppCfgOptions.from_env()

    assert options.app_id == "second"
    assert options.version == "1"
