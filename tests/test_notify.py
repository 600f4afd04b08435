"""Tests for webhook notifications."""

from unittest.mock import MagicMock, patch

import requests

from lib.notify import build_payload, notify, notify_blocked, notify_success


class TestNotify:
    def test_payload_shape(self):
        assert build_payload("hello", "deploys", "rocket") == {
            "text": "hello",
            "channel": "#deploys",
            "username": "drone-rancher-plugin",
            "icon_emoji": ":rocket:",
        }

    @patch("lib.notify.requests.post")
    def test_no_webhook_is_a_noop(self, mock_post):
        assert notify("hello", "deploys", "rocket", "") is False
        mock_post.assert_not_called()

    @patch("lib.notify.requests.post")
    def test_posts_json_to_webhook(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)

        assert notify('say "hi"', "deploys", "rocket", "https://hooks.example.com/x") is True

        args, kwargs = mock_post.call_args
        assert args == ("https://hooks.example.com/x",)
        assert kwargs["json"]["text"] == 'say "hi"'
        assert kwargs["timeout"] > 0

    @patch("lib.notify.requests.post")
    def test_delivery_failure_is_swallowed(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        assert notify("hello", "deploys", "rocket", "https://hooks.example.com/x") is False
        assert mock_post.call_count == 1

    @patch("lib.notify.requests.post")
    def test_http_error_is_swallowed(self, mock_post):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_post.return_value = response

        assert notify("hello", "deploys", "rocket", "https://hooks.example.com/x") is False


class TestNotifyHelpers:
    @patch("lib.notify.requests.post")
    def test_success_uses_success_channel(self, mock_post, config):
        notify_success(config, "Deployment to prod/web completed")

        payload = mock_post.call_args.kwargs["json"]
        assert payload["channel"] == "#deploys"
        assert payload["icon_emoji"] == ":rocket:"

    @patch("lib.notify.requests.post")
    def test_blocked_uses_blocked_channel(self, mock_post, config):
        notify_blocked(config)

        payload = mock_post.call_args.kwargs["json"]
        assert payload["text"] == "CD pipeline blocked on deployment to prod/web"
        assert payload["channel"] == "#alerts"
        assert payload["icon_emoji"] == ":no_entry:"
