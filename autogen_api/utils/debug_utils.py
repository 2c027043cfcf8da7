import cv2
import numpy as np
import traceback
import time
from functools import wraps
from pathlib import Path

from autogen_api.utils.logging_config import get_logger

debug_dir = Path("debug")

def save_debug_image(image, name, session_id=None):
    """Save an intermediate raster when DEBUG is enabled"""
    from autogen_api.config import get_settings
    if image is None or not get_settings().DEBUG:
        return None
    
    target_dir = debug_dir / session_id if session_id else debug_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{name}.png"
    
    if image.dtype != np.uint8:
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    
    cv2.imwrite(str(path), image)
    return str(path)

def debug_timing(func):
    """Decorator to measure and log function execution time"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        end_time = time.time()
        
        logger = get_logger(func.__module__)
        logger.debug(f"Function {func.__name__} took {end_time - start_time:.4f} seconds to execute")
        return result
    return wrapper

def debug_exception(func):
    """Decorator to log exception details before re-raising"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger = get_logger(func.__module__)
            logger.debug(f"Exception in {func.__name__}: {str(e)}")
            logger.debug(f"Stack trace:\n{traceback.format_exc()}")
            raise
    return wrapper

def async_debug_timing(func):
    """Coroutine variant of debug_timing"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            return await func(*args, **kwargs)
        finally:
            logger = get_logger(func.__module__)
            logger.debug(f"Coroutine {func.__name__} took {time.time() - start_time:.4f} seconds")
    return wrapper
