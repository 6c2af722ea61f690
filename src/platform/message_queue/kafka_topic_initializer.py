"""
Kafka Topic Initializer

Creates the integration-event topics at startup with the AdminClient, so the
first publish does not fail with UNKNOWN_TOPIC_OR_PART.
"""

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger

from .kafka_constant_builder import KafkaTopicBuilder


class KafkaTopicInitializer:
    def __init__(
        self,
        *,
        bootstrap_servers: str | None = None,
        total_partitions: int = settings.KAFKA_TOTAL_PARTITIONS,
        replication_factor: int = 1,
    ) -> None:
        self.bootstrap_servers = bootstrap_servers or settings.KAFKA_BOOTSTRAP_SERVERS
        self.total_partitions = total_partitions
        self.replication_factor = replication_factor
        self.admin_client = AdminClient({'bootstrap.servers': self.bootstrap_servers})

    def ensure_topics_exist(self) -> bool:
        """
        Returns:
            True if every topic exists or was created
        """
        required_topics = KafkaTopicBuilder.get_all_topics()
        try:
            existing_topics = set(self.admin_client.list_topics(timeout=10).topics.keys())
        except KafkaException as e:
            Logger.base.error(f'❌ [TOPIC-INIT] Cannot list topics: {e}')
            return False

        topics_to_create = [t for t in required_topics if t not in existing_topics]
        if not topics_to_create:
            Logger.base.info(f'✅ [TOPIC-INIT] All {len(required_topics)} topics already exist')
            return True

        new_topics = [
            NewTopic(
                topic=topic,
                num_partitions=self.total_partitions,
                replication_factor=self.replication_factor,
                config={
                    'cleanup.policy': 'delete',
                    'retention.ms': '604800000',  # 7 days
                },
            )
            for topic in topics_to_create
        ]
        futures = self.admin_client.create_topics(new_topics, request_timeout=30)

        created = 0
        for topic, future in futures.items():
            try:
                future.result()
                Logger.base.info(f'✅ [TOPIC-INIT] Created topic: {topic}')
                created += 1
            except KafkaException as e:
                # another instance may have created it first
                if e.args[0].code() == KafkaError.TOPIC_ALREADY_EXISTS:
                    created += 1
                else:
                    Logger.base.error(f'❌ [TOPIC-INIT] Failed to create {topic}: {e}')

        return created == len(topics_to_create)
