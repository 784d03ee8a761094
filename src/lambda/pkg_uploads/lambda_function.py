import re
import time

import boto3

from busdirectory.config import AWS_REGION, UPLOAD_BUCKET, UPLOAD_URL_EXPIRES
from busdirectory.errors import BadRequest, Internal
from busdirectory.log import log_event
from busdirectory.proxy import error_response, parse_body, preflight, require_caller, response_proxy

s3 = boto3.client('s3', region_name=AWS_REGION)


def safe_name(value):
    cleaned = re.sub(r'[^A-Za-z0-9._-]+', '_', value or '').strip('._')
    return cleaned[:100] or 'upload'


def object_key(user, file_name, upload_type=None):
    prefix = 'bus-photos' if upload_type == 'bus_photo' else 'avatars'
    return f"{prefix}/{safe_name(user)}/{int(time.time() * 1000)}_{safe_name(file_name)}"


def lambda_handler(event, context):
    try:
        if event.get('httpMethod') == 'OPTIONS':
            return preflight()

        user = require_caller(event)
        body = parse_body(event)
        file_name = body.get('fileName')
        content_type = body.get('contentType')
        if not file_name or not content_type:
            raise BadRequest("fileName and contentType are required")
        if not UPLOAD_BUCKET:
            raise Internal("Upload bucket is not configured")

        key = object_key(user, file_name, body.get('type'))
        upload_url = s3.generate_presigned_url(
            'put_object',
            Params={'Bucket': UPLOAD_BUCKET, 'Key': key, 'ContentType': content_type},
            ExpiresIn=UPLOAD_URL_EXPIRES
        )
        log_event("UploadUrlIssued", {"user": user, "key": key})
        return response_proxy(200, {
            "uploadUrl": upload_url,
            "objectUrl": f"https://{UPLOAD_BUCKET}.s3.{AWS_REGION}.amazonaws.com/{key}",
            "key": key,
            "bucket": UPLOAD_BUCKET
        })
    except Exception as e:
        return error_response(e, "Upload URL")
