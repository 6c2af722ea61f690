class ServiceNames:
    """Service name constants"""

    RECREATION_SERVICE = 'recreation-service'  # Tour reservations
    NOTIFICATION_SERVICE = 'notification-service'
    FINANCE_SERVICE = 'finance-service'


class KafkaTopicBuilder:
    """
    Kafka Topic Naming Unified Builder

    Format: {domain}______{action}______{from_service}
    Integration events are broadcast topics: any service may subscribe.
    """

    @staticmethod
    def reservation_held() -> str:
        """Draft reservation finalized into Held with an issued bill"""
        return f'tour-reservation______reservation-held______{ServiceNames.RECREATION_SERVICE}'

    @staticmethod
    def get_all_topics() -> list[str]:
        return [KafkaTopicBuilder.reservation_held()]
