# Generated manually for offers, landings and reference tables

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def reference_fields(code_length=None):
    fields = [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('is_active', models.BooleanField(default=True)),
        ('order', models.IntegerField(default=0)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]
    if code_length:
        fields += [
            ('code', models.CharField(max_length=code_length, unique=True)),
            ('name', models.CharField(max_length=100)),
        ]
    else:
        fields += [
            ('name', models.CharField(max_length=100, unique=True)),
            ('description', models.CharField(blank=True, max_length=255, null=True)),
        ]
    return fields


REFERENCE_OPTIONS = {
    'ordering': ['order', 'name'],
    'abstract': False,
}


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(name='Vertical', fields=reference_fields(), options=REFERENCE_OPTIONS),
        migrations.CreateModel(name='OfferType', fields=reference_fields(), options=REFERENCE_OPTIONS),
        migrations.CreateModel(name='Geo', fields=reference_fields(3), options=REFERENCE_OPTIONS),
        migrations.CreateModel(name='Language', fields=reference_fields(3), options=REFERENCE_OPTIONS),
        migrations.CreateModel(name='Partner', fields=reference_fields(5), options=REFERENCE_OPTIONS),
        migrations.CreateModel(
            name='Offer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vertical', models.CharField(max_length=100)),
                ('title', models.CharField(max_length=255)),
                ('price_usd', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('geo', models.JSONField(blank=True, default=list)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('PAUSED', 'Paused'), ('ARCHIVED', 'Archived')], default='ACTIVE', max_length=10)),
                ('image_url', models.CharField(blank=True, default='', max_length=500)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['order', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='Landing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ext_id', models.IntegerField(blank=True, null=True)),
                ('label', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('LANDING', 'Landing'), ('PRELANDING', 'Pre-landing')], max_length=10)),
                ('locale', models.CharField(max_length=6)),
                ('network_code', models.CharField(blank=True, max_length=6, null=True)),
                ('url', models.URLField(max_length=500)),
                ('notes', models.TextField(blank=True, null=True)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('offer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='landings', to='offers.offer')),
            ],
            options={
                'ordering': ['order', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('create', 'create'), ('update', 'update'), ('delete', 'delete'), ('duplicate', 'duplicate')], max_length=20)),
                ('entity', models.CharField(choices=[('offer', 'offer'), ('landing', 'landing')], max_length=20)),
                ('entity_id', models.CharField(max_length=64)),
                ('diff', models.JSONField(default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
