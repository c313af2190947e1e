from util.config import DEFAULT_CONFIG, load_config


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "config.toml")
    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_overrides_are_merged(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[general]\nscale = 12\n\n[emulator]\nwait_any_key = false\n', encoding="utf-8")

    cfg = load_config(path)

    assert cfg["general"]["scale"] == 12
    assert cfg["general"]["cycle_ms"] == 1
    assert cfg["emulator"]["wait_any_key"] is False
    assert cfg["emulator"]["stack_depth"] == 16


def test_custom_keyboard_layout(tmp_path):
    path = tmp_path / "config.toml"
    layout = [str(i) for i in range(10)] + list("abcdef")
    path.write_text(f"[keyboard]\nlayout = {layout!r}\n".replace("'", '"'), encoding="utf-8")

    cfg = load_config(path)

    assert cfg["keyboard"]["layout"] == layout


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[general]\nscale = 0\n", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_duplicate_keys_rejected(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[keyboard]\nlayout = ["1","1","3","4","q","w","e","r","a","s","d","f","z","x","c","v"]\n', encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_malformed_toml_falls_back(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[general\nscale = ", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG
