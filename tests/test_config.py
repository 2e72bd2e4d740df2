import pytest
from pydantic import ValidationError

from arch_optimizer.config.models import OptimizerConfig
from arch_optimizer.registry import ActionId

MINIMAL = """
[packages]
build_tools = ["base-devel"]
kde_plasma = ["plasma-meta"]
drivers_nvidia = ["nvidia"]
drivers_nouveau = ["xf86-video-nouveau"]
drivers_amd = ["mesa"]
drivers_intel = ["mesa"]
drivers_wifi = ["mt76"]
firedragon = ["firedragon"]
gaming_stack = ["steam"]
audio_pipewire = ["pipewire-pulse"]
audio_pulseaudio = ["pulseaudio"]

[chaotic]
key_id = "3056513887B78AEB"
bootstrap_urls = ["https://example.org/chaotic-keyring.pkg.tar.zst"]

[autopilot]
sequence = ["system_update", "drivers_auto"]
"""


def write(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    return path


def test_defaults_load(config):
    assert config.group_of(ActionId.AUDIO_PULSEAUDIO) == "audio-server"
    assert config.markers_of(ActionId.DRIVERS_NVIDIA) == ["nvidia", "nvidia-settings", "nvidia-utils"]
    assert config.group_of(ActionId.BUILD_TOOLS) is None
    assert config.markers_of(ActionId.BUILD_TOOLS) == []
    assert config.autopilot.sequence[0] is ActionId.SYSTEM_UPDATE
    assert config.confirm.non_interactive == "decline"
    assert len(config.plasma.settings) == 4


def test_minimal_file_uses_model_defaults(tmp_path):
    config = OptimizerConfig.load_config_from_file(write(tmp_path, MINIMAL))

    assert config.groups == {}
    assert str(config.pacman.conf) == "/etc/pacman.conf"
    assert config.performance.timers == ["fstrim.timer"]
    assert config.executor.timeout is None


def test_missing_package_list_is_rejected(tmp_path):
    with pytest.raises(ValidationError, match="gaming_stack"):
        OptimizerConfig.load_config_from_file(write(tmp_path, MINIMAL.replace('gaming_stack = ["steam"]\n', "")))


def test_unknown_action_in_sequence_is_rejected(tmp_path):
    with pytest.raises(ValidationError):
        OptimizerConfig.load_config_from_file(write(tmp_path, MINIMAL.replace('"drivers_auto"', '"make_coffee"')))


def test_selector_cannot_join_a_group(tmp_path):
    text = MINIMAL + '\n[groups.gpu]\ndrivers_auto = ["nvidia"]\n'
    with pytest.raises(ValidationError, match="exclusive group"):
        OptimizerConfig.load_config_from_file(write(tmp_path, text))


def test_action_in_two_groups_is_rejected(tmp_path):
    text = MINIMAL + '\n[groups.a]\ndrivers_amd = ["mesa"]\n\n[groups.b]\ndrivers_amd = ["vulkan-radeon"]\n'
    with pytest.raises(ValidationError, match="both"):
        OptimizerConfig.load_config_from_file(write(tmp_path, text))


def test_invalid_policy_is_rejected(tmp_path):
    with pytest.raises(ValidationError):
        OptimizerConfig.load_config_from_file(write(tmp_path, MINIMAL + '\n[confirm]\nnon_interactive = "maybe"\n'))


def test_invalid_toml(tmp_path):
    with pytest.raises(ValueError, match="Invalid TOML"):
        OptimizerConfig.load_config_from_file(write(tmp_path, "[packages\n"))


def test_missing_file(tmp_path):
    with pytest.raises(ValueError, match="Error reading"):
        OptimizerConfig.load_config_from_file(tmp_path / "absent.toml")


def test_display_summary(config):
    summary = config.display_summary()
    assert "audio-server" in summary
    assert "performance" in summary


def test_three_member_group_is_accepted(tmp_path):
    text = MINIMAL + ('\n[groups.gpu]\ndrivers_nvidia = ["nvidia"]\n'
                      'drivers_nouveau = ["xf86-video-nouveau"]\ndrivers_amd = ["vulkan-radeon"]\n')
    config = OptimizerConfig.load_config_from_file(write(tmp_path, text))

    assert config.group_of(ActionId.DRIVERS_AMD) == "gpu"
    assert len(config.groups["gpu"]) == 3


def test_gaming_stack_keeps_non_conflicting_audio_packages(config):
    gaming = config.packages[ActionId.GAMING_STACK]
    assert {"pipewire-jack", "lib32-pipewire"} <= set(gaming)
    assert "pipewire-pulse" not in gaming
