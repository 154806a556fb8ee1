from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import SystemConfigSerializer, SystemConfigWriteSerializer
from .services import get_config, load_system_settings, set_config


class SystemConfigView(APIView):
    def get(self, request):
        return Response(load_system_settings().as_dict(), status=status.HTTP_200_OK)

    def post(self, request):
        serializer = SystemConfigWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        config = set_config(serializer.validated_data["key"], serializer.validated_data["value"])
        return Response(SystemConfigSerializer(config).data, status=status.HTTP_200_OK)


class SystemConfigDetailView(APIView):
    def get(self, request, key):
        return Response(SystemConfigSerializer(get_config(key)).data, status=status.HTTP_200_OK)
