import logging

from elasticsearch import AsyncElasticsearch

from ..core.config import Settings

logger = logging.getLogger(__name__)


def create_elasticsearch_client(settings: Settings) -> AsyncElasticsearch:
    basic_auth = None
    if settings.ELASTICSEARCH_USERNAME:
        basic_auth = (settings.ELASTICSEARCH_USERNAME, settings.ELASTICSEARCH_PASSWORD or "")

    return AsyncElasticsearch(
        [settings.ELASTICSEARCH_URI],
        basic_auth=basic_auth,
        request_timeout=settings.ELASTICSEARCH_REQUEST_TIMEOUT,
        max_retries=settings.ELASTICSEARCH_MAX_RETRIES,
        retry_on_timeout=True,
    )


async def test_elasticsearch_connection(client: AsyncElasticsearch) -> bool:
    # The service starts without the search cluster; reads fall back to the replica.
    try:
        if await client.ping():
            logger.info("Successfully connected to Elasticsearch")
            return True
        logger.warning("Elasticsearch ping returned no response")
    except Exception as e:
        logger.warning(f"Elasticsearch connection error: {str(e)}")
    return False
