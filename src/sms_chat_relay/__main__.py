import sys

from dotenv import load_dotenv
from loguru import logger

from sms_chat_relay.app_config import load_json_config, parse_app_config, resolve_runtime_env
from sms_chat_relay.bootstrap import bootstrap_runtime
from sms_chat_relay.memory import StoreUnavailableError


def main() -> None:
    load_dotenv()

    app_config = parse_app_config(load_json_config())
    env = resolve_runtime_env(app_config.provider_name)

    missing = env.missing()
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    try:
        runtime = bootstrap_runtime(app_config, env)
    except StoreUnavailableError as ex:
        logger.error(f"Session store unavailable: {ex}")
        sys.exit(1)

    logger.info(
        f"sms-chat-relay listening on {app_config.host}:{app_config.port}{app_config.webhook_path} "
        f"(provider={app_config.provider_name}, model={app_config.model}, "
        f"daily limit={app_config.daily_message_limit})"
    )
    logger.info(f"Session store: {runtime.store.db_path}")
    if runtime.log_descriptions:
        logger.info(f"Logging: {', '.join(runtime.log_descriptions)}")

    try:
        runtime.app.run(host=app_config.host, port=app_config.port, threaded=True)
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
