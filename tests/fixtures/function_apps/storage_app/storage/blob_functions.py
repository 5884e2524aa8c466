from typing import Annotated

from functions_worker import BlobOutput, BlobTrigger, Function, QueueOutput, QueueTrigger


class BlobFunctions:
    @Function("QueueToBlobFunction")
    @BlobOutput("container1/hello.txt", connection="MyOtherConnection")
    def queue_to_blob(
        self, queue_payload: Annotated[str, QueueTrigger("queueName", connection="MyConnection")]
    ) -> str:
        return queue_payload

    @Function("BlobToQueueFunction")
    @QueueOutput("queue2")
    def blob_to_queue(
        self, blob: Annotated[bytes, BlobTrigger("container2/%file%")]
    ) -> str:
        return blob.decode()
