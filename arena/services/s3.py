import boto3
from fastapi import HTTPException
from urllib.parse import urlparse
from PIL import Image
from io import BytesIO
import uuid

from ..config import AWS_ACCESS_KEY, AWS_SECRET_KEY, S3_REGION, S3_BUCKET_NAME, S3_URL
from ..logging_config import get_logger

logger = get_logger(__name__)

s3_client = boto3.client("s3",
    aws_access_key_id=AWS_ACCESS_KEY,
    aws_secret_access_key=AWS_SECRET_KEY,
    region_name=S3_REGION
)

def get_s3_url(key: str) -> str:
    return f"{S3_URL}/{key}"

def extract_key_from_url(url: str) -> str:
    parsed_url = urlparse(url)
    return parsed_url.path.lstrip("/")

def crop_to_ratio(image: Image.Image, width: int, height: int) -> Image.Image:
    target_ratio = width / height
    current_ratio = image.width / image.height

    if current_ratio > target_ratio:
        # Image is too wide - crop width
        new_width = int(image.height * target_ratio)
        left = (image.width - new_width) // 2
        return image.crop((left, 0, left + new_width, image.height))
    if current_ratio < target_ratio:
        # Image is too tall - crop height
        new_height = int(image.width / target_ratio)
        top = (image.height - new_height) // 2
        return image.crop((0, top, image.width, top + new_height))
    return image

def process_image(file_content: bytes, width: int, height: int, quality: int = 85) -> BytesIO:
    image = Image.open(BytesIO(file_content))

    # JPEG has no alpha channel
    if image.mode != 'RGB':
        image = image.convert('RGB')

    image = crop_to_ratio(image, width, height)
    image = image.resize((width, height),
        Image.Resampling.LANCZOS if image.width > width
        else Image.Resampling.BICUBIC
    )

    output = BytesIO()
    image.save(output, format='JPEG', quality=quality)
    output.seek(0)
    return output

async def upload_image(file_content: bytes,
                        folder: str,
                        identifier: str,
                        width: int = 400,
                        height: int = 400,
                        quality: int = 85) -> str:
    try:
        output = process_image(file_content, width, height, quality)

        separator = "-" if identifier else ""
        filename = f"{folder}/{identifier}{separator}{uuid.uuid4()}.jpg"

        s3_client.upload_fileobj(
            output,
            S3_BUCKET_NAME,
            filename,
            ExtraArgs={'ContentType': 'image/jpeg'}
        )

        return get_s3_url(filename)

    except Exception as e:
        logger.error("image_upload_failed", folder=folder, error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to process or upload image: {str(e)}")

def delete_file(key: str) -> bool:
    try:
        s3_client.delete_object(Bucket=S3_BUCKET_NAME, Key=key)
        return True
    except Exception as e:
        logger.warning("s3_delete_failed", key=key, error=str(e))
        return False
