import asyncio
import logging

from http_server.request import ParameterError, Request
from http_server.response import Response, response
from http_server.server import HTTPServer
from linekv.config import Settings, get_settings
from linekv.engine import Engine
from linekv.models.exceptions import InvalidRecordError

logger = logging.getLogger()

KEY_NAME = "key"
VALUE_NAME = "value"

ERR_NO_KEY_PROVIDED = "error: No key provided"
ERR_NO_VALUE_PROVIDED = "error: No value provided"
ERR_MULTIPLE_KEYS = "error: Multiple keys provided"
ERR_MULTIPLE_VALUES = "error: Multiple values provided"
ERR_NO_SUCH_KEY = "error: No such key exists"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


async def main(settings: Settings | None = None):
    settings = settings or get_settings()
    server = HTTPServer(host=settings.host, port=settings.port)
    engine = await Engine.create(settings.data_file, sync_writes=settings.sync_writes)
    await register_routes(server, engine)
    logger.debug(f"Registered routes: {list(server.routes)}")
    try:
        await server.start()
    finally:
        await engine.close()


def _key(request: Request) -> str:
    return request.get_one(KEY_NAME, ERR_NO_KEY_PROVIDED, ERR_MULTIPLE_KEYS)


async def register_routes(server: HTTPServer, engine: Engine):

    @server.route('/', ['PUT'])
    async def put(request: Request) -> Response:
        try:
            key = _key(request)
            value = request.get_one(VALUE_NAME, ERR_NO_VALUE_PROVIDED, ERR_MULTIPLE_VALUES)
        except ParameterError as e:
            return response(status_code=400).text(str(e))

        logger.info(f"Inserting key: {key}, value: {value}")

        try:
            existed = await engine.put(key, value)
        except InvalidRecordError as e:
            return response(status_code=400).text(f"error: {e}")

        logger.debug(f"Key {key} {'updated' if existed else 'created'}")
        return response(status_code=200).text("OK")

    @server.route('/', ['GET'])
    async def get(request: Request) -> Response:
        try:
            key = _key(request)
        except ParameterError as e:
            return response(status_code=400).text(str(e))

        logger.info(f"Getting value at key: {key}")

        value, found = await engine.get(key)
        if not found:
            return response(status_code=404).text(ERR_NO_SUCH_KEY)

        return response(status_code=200).text(value)

    @server.route('/', ['DELETE'])
    async def delete(request: Request) -> Response:
        try:
            key = _key(request)
        except ParameterError as e:
            return response(status_code=400).text(str(e))

        logger.info(f"Deleting key: {key}")

        deleted = await engine.delete(key)
        if not deleted:
            return response(status_code=404).text(ERR_NO_SUCH_KEY)

        return response(status_code=200).text("OK")


def run():
    settings = get_settings()
    configure_logging(settings)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
