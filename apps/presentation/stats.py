from apps.infrastructure.repositories import DocumentRepository, UserRepository


def get_document_metrics(documents: DocumentRepository = None, users: UserRepository = None):
    documents = documents or DocumentRepository()
    users = users or UserRepository()

    counts = documents.stats()
    total = counts['total']
    signed_count = counts['signed']
    signature_rate = (signed_count / total * 100) if total > 0 else 0
    avg_signature_time = counts['average_signature_time_hours']

    return {
        'total_users': users.count(),
        'total_documents': total,
        'pending_documents': counts['pending'],
        'signed_documents': signed_count,
        'signature_rate': round(signature_rate, 2),
        'average_signature_time_hours': round(avg_signature_time, 2) if avg_signature_time is not None else None,
    }
